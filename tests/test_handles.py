"""
Handle Tests
============

Transient handle lifecycle and download naming.
"""

import pytest

from pixelclip.session import (
    HANDLE_URL_PREFIX,
    HandleRegistry,
    HandleRevoked,
    HandleRole,
    download_filename,
    handle_id,
)


class TestHandleRegistry:
    """Tests for HandleRegistry and TransientHandle."""

    def test_create_and_resolve(self, registry, video_payload):
        handle = registry.create(video_payload, HandleRole.ORIGINAL)

        assert handle.url.startswith(HANDLE_URL_PREFIX)
        assert handle.role is HandleRole.ORIGINAL
        assert registry.resolve(handle.url) is video_payload
        assert handle.resolve() is video_payload
        assert not handle.revoked
        assert registry.active_count == 1

    def test_urls_are_unique(self, registry, video_payload):
        first = registry.create(video_payload, HandleRole.ORIGINAL)
        second = registry.create(video_payload, HandleRole.ORIGINAL)

        assert first.url != second.url

    def test_revoke_is_idempotent(self, registry, video_payload):
        handle = registry.create(video_payload, HandleRole.PROCESSED)

        assert handle.revoke() is True
        assert handle.revoke() is False
        assert registry.revoke(handle.url) is False
        assert handle.revoked
        assert registry.revoked_count == 1
        assert registry.active_count == 0

    def test_revoked_handle_does_not_resolve(self, registry, video_payload):
        handle = registry.create(video_payload, HandleRole.ORIGINAL)
        registry.revoke(handle)

        with pytest.raises(HandleRevoked):
            registry.resolve(handle.url)
        with pytest.raises(HandleRevoked):
            handle.resolve()

    def test_unknown_url(self, registry):
        with pytest.raises(HandleRevoked):
            registry.resolve(f"{HANDLE_URL_PREFIX}missing")

    def test_close_revokes_everything(self, registry, video_payload):
        handles = [registry.create(video_payload, HandleRole.ORIGINAL) for _ in range(3)]

        assert registry.close() == 3
        assert all(handle.revoked for handle in handles)
        assert registry.metrics() == {
            "active_handles": 0,
            "created_handles": 3,
            "revoked_handles": 3,
        }

    def test_handle_id(self, registry, video_payload):
        handle = registry.create(video_payload, HandleRole.ORIGINAL)

        assert handle_id(handle.url) == handle.id
        assert HANDLE_URL_PREFIX + handle.id == handle.url
        assert handle_id("plain") == "plain"


class TestDownloadFilename:
    """Tests for download_filename."""

    def test_truncates_stem(self):
        assert (
            download_filename("My Holiday Video 2024.mov", 10)
            == "pixelated_My Holiday Vide_p10.mov"
        )

    def test_short_name(self):
        assert download_filename("clip.mp4", 2) == "pixelated_clip_p2.mp4"

    def test_keeps_last_extension(self):
        assert download_filename("archive.final.webm", 50) == "pixelated_archive.final_p50.webm"

    def test_missing_stem(self):
        assert download_filename(".mp4", 10) == "pixelated_video_p10.mp4"

    def test_missing_extension(self):
        assert download_filename("recording", 10) == "pixelated_recording_p10.mp4"

    def test_missing_name(self):
        assert download_filename(None, 10) == "pixelated_video_p10.mp4"

    def test_strips_directories(self):
        assert download_filename("C:\\videos\\clip.avi", 4) == "pixelated_clip_p4.avi"

    def test_custom_stem_length(self):
        assert download_filename("abcdefgh.mp4", 10, max_stem=3) == "pixelated_abc_p10.mp4"
