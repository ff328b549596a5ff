"""
Pixelate Flow Schemas
=====================

Pydantic models for the processing boundary.

The wire contract is shared with any replacement backend and must not
change shape:

Input:
    {
        "videoDataUri": "data:video/mp4;base64,AAAAIGZ0eXBpc29t...",
        "pixelationLevel": 10
    }

Output:
    {
        "processedVideoDataUri": "data:video/mp4;base64,AAAAIGZ0eXBpc29t..."
    }

Example:
    from pixelclip.models.flow import PixelateVideoInput

    request = PixelateVideoInput.model_validate(
        {"videoDataUri": uri, "pixelationLevel": 10}
    )
    print(request.pixelation_level)
"""

from pydantic import BaseModel, ConfigDict, Field, StrictInt


MIN_PIXELATION_LEVEL = 2
MAX_PIXELATION_LEVEL = 50


class PixelateVideoInput(BaseModel):
    """
    Input of the pixelate-video flow.

    Attributes:
        video_data_uri: Video as "data:<mimetype>;base64,<encoded_data>"
        pixelation_level: Integer intensity knob in [2, 50]
    """

    model_config = ConfigDict(populate_by_name=True)

    video_data_uri: str = Field(
        ...,
        alias="videoDataUri",
        description="The video file as a data URI: 'data:<mimetype>;base64,<encoded_data>'",
    )

    pixelation_level: StrictInt = Field(
        ...,
        alias="pixelationLevel",
        ge=MIN_PIXELATION_LEVEL,
        le=MAX_PIXELATION_LEVEL,
        description="The level of pixelation to simulate (integer from 2 to 50)",
    )


class PixelateVideoOutput(BaseModel):
    """
    Output of the pixelate-video flow.

    The simulated backend returns the input URI unchanged.
    """

    model_config = ConfigDict(populate_by_name=True)

    processed_video_data_uri: str = Field(
        ...,
        alias="processedVideoDataUri",
        description="The processed video file as a data URI",
    )
