"""
Download Naming
===============

Filename for the processed artifact:

    pixelated_<stem[:15]>_p<level>.<extension>

"My Holiday Video 2024.mov" at level 10 -> "pixelated_My Holiday Vide_p10.mov"

A name without a dot keeps the whole name as its stem and gets the "mp4"
extension ("clip" -> "pixelated_clip_p10.mp4"), rather than treating the
name as an extension with an empty stem. An empty stem (".mp4") becomes
"video".
"""

from typing import Optional


DEFAULT_STEM = "video"
DEFAULT_EXTENSION = "mp4"
DEFAULT_STEM_LENGTH = 15


def download_filename(
    original_name: Optional[str],
    level: int,
    max_stem: int = DEFAULT_STEM_LENGTH,
) -> str:
    """
    Build the download name for a processed video.

    Args:
        original_name: Name of the uploaded file
        level: Pixelation level the result was produced with
        max_stem: Number of stem characters kept

    Returns:
        Filename string
    """
    name = (original_name or "").replace("\\", "/").rsplit("/", 1)[-1]
    stem, dot, extension = name.rpartition(".")
    if not dot:
        stem, extension = name, ""

    stem = stem or DEFAULT_STEM
    extension = extension or DEFAULT_EXTENSION
    return f"pixelated_{stem[:max_stem]}_p{level}.{extension}"
