"""
HTTP Request Schemas
====================

Request bodies accepted by the PixelClip HTTP surface.

Upload Contract:
    {
        "filename": "holiday.mp4",
        "contentType": "video/mp4",
        "data": "<base64 bytes>"
    }
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class VideoUpload(BaseModel):
    """Video file sent by the client as base64 text."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(..., min_length=1)
    content_type: str = Field(..., alias="contentType", min_length=1)
    data: str = Field(..., description="Base64-encoded file bytes")


class ProcessRequest(BaseModel):
    """Processing request for the loaded video."""

    model_config = ConfigDict(populate_by_name=True)

    pixelation_level: Optional[Any] = Field(
        default=None,
        alias="pixelationLevel",
        description=(
            "Pixelation level; the configured default is used when omitted. "
            "Checked by the session so bad values surface as InvalidParameter"
        ),
    )
