"""
Top‑level package for the User Directory API.

Marks ``user_directory_api`` as a package so that modules within
``app`` can be imported with fully qualified names such as
``user_directory_api.app.main``, both when serving the application
and when running the test suite from the repository root.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
