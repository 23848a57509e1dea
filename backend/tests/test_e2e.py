"""
End-to-end tests: the whole upload -> analyze -> generate journey through the
ASGI app, with local storage and mocked Gemini models.
"""

from io import BytesIO
from types import SimpleNamespace

import pytest
from httpx import ASGITransport
from PIL import Image

from wizard.client import StudioClient
from wizard.session import WizardSession
from wizard.state import FailedAction, FailedStage, GenerateStage, ResultStage, UploadStage


class TestHttpJourney:
    @pytest.mark.asyncio
    async def test_full_flow(self, client, sample_jpeg_bytes, mock_vision_model, mock_image_model):
        upload = await client.post(
            "/api/upload", files={"file": ("me.jpg", sample_jpeg_bytes, "image/jpeg")}
        )
        assert upload.status_code == 200
        image_url = upload.json()["url"]

        analysis = await client.post("/api/analyze", json={"imageUrl": image_url})
        assert analysis.status_code == 200
        recommendation = analysis.json()["recommendations"][0]

        # The model receives the stored upload, with its sniffed type
        contents = mock_vision_model.models.generate_content.call_args.kwargs["contents"]
        assert contents[1].inline_data.data == sample_jpeg_bytes
        assert contents[1].inline_data.mime_type == "image/jpeg"

        generated = await client.post(
            "/api/generate",
            json={"imageUrl": image_url, "prompt": recommendation["description"]},
        )
        assert generated.status_code == 200

        contents = mock_image_model.models.generate_content.call_args.kwargs["contents"]
        assert contents[1] == "Short textured crop with a soft fringe"

        result = await client.get(generated.json()["generatedImageUrl"])
        assert Image.open(BytesIO(result.content)).size == (1024, 1024)


class TestWizardOverApi:
    """The wizard session driving the real app through StudioClient."""

    @pytest.mark.asyncio
    async def test_session_reaches_result_and_downloads(self, app, sample_image_file, tmp_path):
        async with StudioClient(base_url="http://test", transport=ASGITransport(app=app)) as api:
            session = WizardSession(api)

            await session.upload_file(sample_image_file)
            assert isinstance(session.stage, GenerateStage)
            assert session.stage.recommendations[0].title == "Textured Crop"

            session.apply_recommendation(0)
            await session.generate()
            assert isinstance(session.stage, ResultStage)

            saved = await api.download(session.stage.generated.url, tmp_path / "out" / "result.jpg")
            assert saved.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

            session.reset()
            assert isinstance(session.stage, UploadStage)

    @pytest.mark.asyncio
    async def test_analysis_failure_then_retry(self, app, mock_vision_model, sample_image_file):
        mock_vision_model.models.generate_content.side_effect = [
            RuntimeError("model overloaded"),
            SimpleNamespace(text="Keep it long with face-framing layers."),
        ]

        async with StudioClient(base_url="http://test", transport=ASGITransport(app=app)) as api:
            session = WizardSession(api)

            await session.upload_file(sample_image_file)
            assert isinstance(session.stage, FailedStage)
            assert session.stage.action == FailedAction.ANALYZE
            assert session.stage.error == "Analysis failed"

            await session.retry()
            assert isinstance(session.stage, GenerateStage)
            assert session.stage.recommendations[0].title == "AI Analysis Complete"
            assert session.stage.recommendations[0].description == (
                "Keep it long with face-framing layers."
            )
