"""
Application package initializer.

This package contains the main entrypoint for the API and its
submodules: ``core`` (configuration, logging, persistence, security,
errors), ``schemas`` (request and response models), ``services``
(business rules) and ``api`` (versioned HTTP routers).
"""

from .main import app  # noqa: F401
