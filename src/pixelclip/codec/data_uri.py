"""
Data URI Codec
==============

Conversion between MediaPayload and its data URI text form.

Format:
    data:<mimetype>;base64,<encoded_data>

Design Rules:
    - This is the ONLY place in the codebase that builds or parses data URIs
    - encode is total for any payload
    - decode fails fast with MalformedRepresentation, never returns partial data
    - decode(encode(p)) == p for every payload
"""

import base64
import binascii
import logging
from typing import Tuple

from pixelclip.errors import PixelClipError
from pixelclip.models.media import MediaPayload


logger = logging.getLogger(__name__)


DATA_URI_SCHEME = "data:"
BASE64_MARKER = ";base64"


class MalformedRepresentation(PixelClipError, ValueError):
    """Raised when a string is not a well-formed base64 data URI."""
    pass


def encode(payload: MediaPayload) -> str:
    """
    Encode a payload as a base64 data URI.

    Args:
        payload: Media payload to encode

    Returns:
        "data:<mime>;base64,<data>"
    """
    encoded = base64.b64encode(payload.data).decode("ascii")
    return f"{DATA_URI_SCHEME}{payload.mime_type}{BASE64_MARKER},{encoded}"


def _split(representation: str) -> Tuple[str, str]:
    """Split a data URI into (mime_type, base64 segment)."""
    if not isinstance(representation, str):
        raise MalformedRepresentation(
            f"Expected a data URI string, got {type(representation).__name__}"
        )

    if not representation.startswith(DATA_URI_SCHEME):
        raise MalformedRepresentation("Data URI must start with 'data:'")

    header, separator, data = representation[len(DATA_URI_SCHEME):].partition(",")
    if not separator:
        raise MalformedRepresentation("Data URI is missing the ',' delimiter")

    if not header.endswith(BASE64_MARKER):
        raise MalformedRepresentation(
            f"Data URI header must end with '{BASE64_MARKER}': {header[:64]!r}"
        )

    return header[: -len(BASE64_MARKER)], data


def peek_mime_type(representation: str) -> str:
    """
    Read the declared MIME type without decoding the payload.

    Raises:
        MalformedRepresentation: If the delimiter structure is wrong
    """
    mime_type, _ = _split(representation)
    return mime_type


def decode_base64(data: str) -> bytes:
    """
    Strictly decode a base64 segment.

    Raises:
        MalformedRepresentation: If data is not valid base64
    """
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedRepresentation(f"Invalid base64 payload: {e}") from e


def decode(representation: str) -> MediaPayload:
    """
    Decode a base64 data URI back into a payload.

    Args:
        representation: "data:<mime>;base64,<data>"

    Returns:
        MediaPayload with the original bytes and MIME type

    Raises:
        MalformedRepresentation: If the structure or base64 segment is invalid
    """
    mime_type, data = _split(representation)
    payload = MediaPayload(data=decode_base64(data), mime_type=mime_type)
    logger.debug(f"Decoded data URI: {payload!r}")
    return payload


def media_category(mime_type: str) -> str:
    """
    Top-level media type of a MIME string.

    "video/mp4" -> "video", "image/png;foo=bar" -> "image", "" -> "".
    """
    if "/" not in mime_type:
        return ""
    return mime_type.split("/", 1)[0].strip().lower()
