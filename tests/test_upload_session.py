import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from viewer.preferences import ADMIN_SESSION, LAST_AUTHOR, UPLOAD_CREDENTIALS, Preferences
from viewer.upload import UploadDraft, UploadFailedError, UploadInputError, UploadSession

SUGGESTION = {
    "title": "Calm Lake",
    "description": "Still water at dawn",
    "keywords": ["lake", "calm", "dawn"],
    "suggestedSlug": "Calm Lake At Dawn",
}


@pytest.fixture
def prefs(tmp_path):
    prefs = Preferences(str(tmp_path / "prefs.json"))
    prefs.set(ADMIN_SESSION, "test-admin-token")
    return prefs


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "lake.jpg"
    path.write_bytes(b"\xff\xd8jpeg")
    return str(path)


def created(payload):
    return httpx.Response(201, json=payload)


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_suggestion_fills_draft(self, prefs, image_file):
        session = UploadSession(prefs, image_file, analyze=AsyncMock(return_value=SUGGESTION))

        await session.start_analysis()

        assert session.draft.title == "Calm Lake"
        assert session.draft.keywords == "lake, calm, dawn"
        assert session.draft.slug == "calm-lake-at-dawn"
        assert session.is_analyzing is False
        session.analyze.assert_awaited_once_with(image_file, "test-admin-token")

    @pytest.mark.asyncio
    async def test_failure_leaves_draft_alone(self, prefs, image_file):
        draft = UploadDraft(title="Typed by hand")
        session = UploadSession(prefs, image_file, draft, analyze=AsyncMock(side_effect=ConnectionError("offline")))

        await session.start_analysis()

        assert session.draft.title == "Typed by hand"
        assert session.is_analyzing is False

    @pytest.mark.asyncio
    async def test_null_suggestion_leaves_draft_alone(self, prefs, image_file):
        session = UploadSession(prefs, image_file, analyze=AsyncMock(return_value=None))
        await session.start_analysis()
        assert session.draft.title == ""

    @pytest.mark.asyncio
    async def test_suggestion_after_submit_is_ignored(self, prefs, image_file):
        release = asyncio.Event()

        async def slow_analyze(path, token):
            await release.wait()
            return SUGGESTION

        publish = AsyncMock(return_value=created({"id": "abc", "slug": "manual"}))
        draft = UploadDraft(title="Manual", description="Typed", category="Nature", slug="manual")
        session = UploadSession(prefs, image_file, draft, analyze=slow_analyze, publish=publish)

        analysis = session.start_analysis()
        await session.submit()
        release.set()
        await analysis

        sent = publish.await_args.args[1]
        assert sent["title"] == "Manual"
        assert sent["slug"] == "manual"
        assert session.draft.title == "Manual"


class TestSubmit:
    @pytest.mark.asyncio
    async def test_missing_file(self, prefs, tmp_path):
        publish = AsyncMock()
        session = UploadSession(prefs, str(tmp_path / "nope.jpg"), publish=publish)

        with pytest.raises(UploadInputError):
            await session.submit()
        publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_file_selected(self, prefs):
        with pytest.raises(UploadInputError):
            await UploadSession(prefs, None).submit()

    @pytest.mark.asyncio
    async def test_success_remembers_author(self, prefs, image_file):
        publish = AsyncMock(return_value=created({"id": "abc", "slug": "lake"}))
        prefs.set(UPLOAD_CREDENTIALS, "my-key:my-secret")
        draft = UploadDraft(title="Lake", description="Calm", category="Nature", author="Ada ")
        session = UploadSession(prefs, image_file, draft, publish=publish)

        record = await session.submit()

        assert record["id"] == "abc"
        path, data, token = publish.await_args.args
        assert path == image_file
        assert data["upload_credentials"] == "my-key:my-secret"
        assert token == "test-admin-token"
        assert prefs.get(LAST_AUTHOR) == "Ada"

    @pytest.mark.asyncio
    async def test_author_defaults_from_preferences(self, prefs, image_file):
        prefs.set(LAST_AUTHOR, "Grace")
        assert UploadSession(prefs, image_file).draft.author == "Grace"

    @pytest.mark.asyncio
    async def test_server_error_detail_is_surfaced(self, prefs, image_file):
        response = httpx.Response(502, json={"detail": "Upload failed: Invalid API key"})
        session = UploadSession(prefs, image_file, publish=AsyncMock(return_value=response))

        with pytest.raises(UploadFailedError, match="Invalid API key"):
            await session.submit()
        assert prefs.get(LAST_AUTHOR) is None

    @pytest.mark.asyncio
    async def test_no_response(self, prefs, image_file):
        session = UploadSession(prefs, image_file, publish=AsyncMock(return_value=None))
        with pytest.raises(UploadFailedError, match="No response"):
            await session.submit()
