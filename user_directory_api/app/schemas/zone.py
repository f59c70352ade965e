"""
Pydantic schemas for geo zones.

A zone belongs to exactly one user.  Its geometry and metadata are
opaque to the service: they are stored and returned as given, and
only their presence is checked.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ZoneCreate(BaseModel):
    """Complete zone payload, used both for creation and for overwrite."""

    name: str = Field(..., examples=["Home"])
    geometry: Dict[str, Any] = Field(
        ...,
        examples=[{"type": "Point", "coordinates": [37.6173, 55.7558], "radius": 250}],
    )
    metadata: Optional[Dict[str, Any]] = None


class ZoneRead(ZoneCreate):
    id: int
    user_id: int
    created_at: str
    updated_at: str

    model_config = {
        "from_attributes": True,
    }
