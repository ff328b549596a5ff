"""
Processing Tests
================

The pixelate-video flow: schema validation, the simulated backend and
the media-category check at the processing boundary.
"""

import pytest

from pixelclip.codec import MalformedRepresentation, encode
from pixelclip.config import ProcessingConfig, Settings
from pixelclip.models.flow import PixelateVideoInput, PixelateVideoOutput
from pixelclip.models.media import MediaPayload
from pixelclip.processing import (
    InvalidParameter,
    MediaCategoryMismatch,
    ProcessingClient,
    ProcessingFailed,
    SimulatedPixelationBackend,
    create_processing_backend,
    simulated_latency,
    validate_pixelation_level,
)


class RecordingSleep:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class FailingBackend:
    name = "failing"

    async def transform(self, representation, level):
        raise RuntimeError("backend exploded")


class FixedBackend:
    name = "fixed"

    def __init__(self, result):
        self.result = result
        self.calls = 0

    async def transform(self, representation, level):
        self.calls += 1
        return self.result


class TestLatency:
    """Tests for the simulated latency formula."""

    def test_defaults_match_canonical_formula(self):
        assert simulated_latency(10) == pytest.approx(1.0)
        assert simulated_latency(2) == pytest.approx(0.6)

    def test_monotonic_in_level(self):
        delays = [simulated_latency(level) for level in range(2, 51)]

        assert delays == sorted(delays)
        assert len(set(delays)) == len(delays)


class TestSimulatedBackend:
    """Tests for SimulatedPixelationBackend."""

    @pytest.mark.asyncio
    async def test_returns_input_unchanged(self, video_payload):
        sleep = RecordingSleep()
        backend = SimulatedPixelationBackend(0.5, 0.05, sleep=sleep)
        uri = encode(video_payload)

        result = await backend.transform(uri, 10)

        assert result == uri
        assert sleep.delays == [pytest.approx(1.0)]

    def test_factory_builds_simulated_backend(self):
        settings = Settings(
            processing=ProcessingConfig(base_delay_seconds=0.25, per_level_delay_seconds=0.01)
        )

        backend = create_processing_backend(settings)

        assert isinstance(backend, SimulatedPixelationBackend)
        assert backend.base_delay_seconds == 0.25
        assert backend.per_level_delay_seconds == 0.01

    def test_factory_rejects_unknown_backend(self):
        settings = Settings(processing=ProcessingConfig(backend="dall-e"))

        with pytest.raises(ValueError):
            create_processing_backend(settings)


class TestPixelationLevel:
    """Range invariant: [2, 50], integers only."""

    @pytest.mark.parametrize("level", [2, 10, 50])
    def test_accepts_boundaries(self, level):
        assert validate_pixelation_level(level) == level

    @pytest.mark.parametrize("level", [1, 51, 0, -5, 10.0, 10.5, True, "10", None])
    def test_rejects(self, level):
        with pytest.raises(InvalidParameter):
            validate_pixelation_level(level)

    def test_schema_rejects_float_and_bool(self):
        from pydantic import ValidationError

        for level in (10.0, True):
            with pytest.raises(ValidationError):
                PixelateVideoInput(videoDataUri="data:video/mp4;base64,", pixelationLevel=level)


class TestProcessingClient:
    """Tests for ProcessingClient.pixelate_video and process."""

    @pytest.mark.asyncio
    async def test_scenario_returns_same_data_uri(self, client, video_payload):
        uri = encode(video_payload)

        output = await client.pixelate_video({"videoDataUri": uri, "pixelationLevel": 10})

        assert isinstance(output, PixelateVideoOutput)
        assert output.processed_video_data_uri == uri
        assert output.model_dump(by_alias=True) == {"processedVideoDataUri": uri}

    @pytest.mark.asyncio
    async def test_accepts_model_input(self, client, video_payload):
        uri = encode(video_payload)
        data = PixelateVideoInput(video_data_uri=uri, pixelation_level=2)

        output = await client.pixelate_video(data)

        assert output.processed_video_data_uri == uri

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [2, 50])
    async def test_boundary_levels_succeed(self, client, video_payload, level):
        uri = encode(video_payload)

        assert await client.process(uri, level) == uri

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [1, 51, 10.5])
    async def test_invalid_level_never_reaches_backend(self, video_payload, level):
        backend = FixedBackend("data:video/mp4;base64,")
        async with ProcessingClient(backend) as client:
            with pytest.raises(InvalidParameter):
                await client.pixelate_video(
                    {"videoDataUri": encode(video_payload), "pixelationLevel": level}
                )
            with pytest.raises(InvalidParameter):
                await client.process(encode(video_payload), level)

        assert backend.calls == 0
        assert client.metrics.rejected == 2

    @pytest.mark.asyncio
    async def test_missing_field_is_invalid_parameter(self, client):
        with pytest.raises(InvalidParameter):
            await client.pixelate_video({"pixelationLevel": 10})

    @pytest.mark.asyncio
    async def test_malformed_input_uri(self, client):
        with pytest.raises(MalformedRepresentation):
            await client.process("not-a-data-uri", 10)

    @pytest.mark.asyncio
    async def test_rejects_still_image_returned_for_video(self, video_payload):
        image_uri = encode(MediaPayload(data=b"\x89PNG", mime_type="image/png"))
        async with ProcessingClient(FixedBackend(image_uri)) as client:
            with pytest.raises(MediaCategoryMismatch):
                await client.process(encode(video_payload), 10)

        assert client.metrics.failed == 1

    @pytest.mark.asyncio
    async def test_category_mismatch_is_processing_failure(self, video_payload):
        image_uri = encode(MediaPayload(data=b"\x89PNG", mime_type="image/png"))
        async with ProcessingClient(FixedBackend(image_uri)) as client:
            with pytest.raises(ProcessingFailed):
                await client.process(encode(video_payload), 10)

    @pytest.mark.asyncio
    async def test_malformed_output(self, video_payload):
        async with ProcessingClient(FixedBackend("garbage")) as client:
            with pytest.raises(MalformedRepresentation):
                await client.process(encode(video_payload), 10)

    @pytest.mark.asyncio
    async def test_backend_exception_wrapped(self, video_payload):
        async with ProcessingClient(FailingBackend()) as client:
            with pytest.raises(ProcessingFailed) as exc_info:
                await client.process(encode(video_payload), 10)

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_closed_client_refuses_calls(self, instant_backend, video_payload):
        client = ProcessingClient(instant_backend)

        with pytest.raises(ProcessingFailed):
            await client.process(encode(video_payload), 10)

        await client.start()
        await client.close()
        assert not client.started
        with pytest.raises(ProcessingFailed):
            await client.process(encode(video_payload), 10)

    def test_credentials_are_opaque(self, instant_backend):
        client = ProcessingClient(instant_backend, api_key="not-validated")

        assert client.has_credentials
        assert not ProcessingClient(instant_backend).has_credentials

    @pytest.mark.asyncio
    async def test_metrics(self, client, video_payload):
        await client.process(encode(video_payload), 10)

        assert client.metrics.to_dict() == {
            "calls": 1,
            "succeeded": 1,
            "failed": 0,
            "rejected": 0,
        }
