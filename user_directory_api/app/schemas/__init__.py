"""
Pydantic schema definitions for API payloads.

Users and zones each define their own request and response models.
Schemas are separated from the storage layout so that the API
representation can evolve independently of the database.
"""
