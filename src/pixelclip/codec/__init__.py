"""
Codec Module
============

Binary/text transcoding between MediaPayload and data URIs.

Example:
    from pixelclip.codec import decode, encode
    from pixelclip.models import MediaPayload

    uri = encode(MediaPayload(data=b"...", mime_type="video/mp4"))
    payload = decode(uri)
"""

from pixelclip.codec.data_uri import (
    MalformedRepresentation,
    decode,
    decode_base64,
    encode,
    media_category,
    peek_mime_type,
)


__all__ = [
    "MalformedRepresentation",
    "encode",
    "decode",
    "decode_base64",
    "media_category",
    "peek_mime_type",
]
