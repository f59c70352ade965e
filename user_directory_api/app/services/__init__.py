"""
Service layer.

Each service encapsulates the business rules for one part of the
directory (users, friend lists, zones, permissions, roles, audit).
Services raise ``core.errors`` exceptions and never deal with HTTP, so
API handlers stay thin.
"""
