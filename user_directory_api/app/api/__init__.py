"""
HTTP layer of the User Directory API.

Only ``v1`` exists; its ``router`` is mounted by ``app.main`` under
``/api/v1``.
"""
