import asyncio
import logging
import os
from dataclasses import asdict, dataclass, replace
from typing import Awaitable, Callable, Optional

from viewer import api
from viewer.helpers import admin_token, normalize_slug
from viewer.preferences import LAST_AUTHOR, UPLOAD_CREDENTIALS, Preferences

logger = logging.getLogger(__name__)


class UploadInputError(Exception):
    """The form cannot be sent as it is (e.g. no image selected)."""


class UploadFailedError(Exception):
    """The server or the asset host rejected the upload."""


@dataclass
class UploadDraft:
    title: str = ""
    description: str = ""
    category: str = ""
    keywords: str = ""
    slug: str = ""
    author: str = ""


class UploadSession:
    """One admin upload: optional AI pre-fill, then publish.

    Submitting does not wait for the analysis. The draft is copied at submit
    time and a suggestion arriving afterwards is discarded.
    """

    def __init__(
        self,
        prefs: Preferences,
        file_path: Optional[str] = None,
        draft: Optional[UploadDraft] = None,
        analyze: Callable[..., Awaitable[Optional[dict]]] = api.analyze_image,
        publish: Callable[..., Awaitable] = api.upload_image,
    ):
        self.prefs = prefs
        self.file_path = file_path
        self.draft = draft or UploadDraft(author=prefs.get(LAST_AUTHOR, "") or "")
        self.analyze = analyze
        self.publish = publish
        self.is_analyzing = False
        self.submitted = False
        self._analysis: Optional[asyncio.Task] = None

    def start_analysis(self) -> asyncio.Task:
        self.is_analyzing = True
        self._analysis = asyncio.create_task(self._analyze())
        return self._analysis

    async def _analyze(self) -> None:
        try:
            suggestion = await self.analyze(self.file_path, admin_token(self.prefs))
            if not suggestion:
                logger.info("No AI suggestion available; fill the form manually")
                return
            if self.submitted:
                logger.info("AI suggestion arrived after submit; ignoring it")
                return
            self.apply_suggestion(suggestion)
        except Exception as e:
            logger.error(f"AI Analysis failed: {e}")
        finally:
            self.is_analyzing = False

    def apply_suggestion(self, suggestion: dict) -> None:
        self.draft.title = suggestion["title"]
        self.draft.description = suggestion["description"]
        self.draft.keywords = ", ".join(suggestion["keywords"])
        self.draft.slug = normalize_slug(suggestion["suggestedSlug"])

    async def submit(self) -> dict:
        if not self.file_path or not os.path.isfile(self.file_path):
            raise UploadInputError("Please select an image first")

        self.submitted = True
        snapshot = replace(self.draft)
        data = asdict(snapshot)
        credentials = self.prefs.get(UPLOAD_CREDENTIALS)
        if credentials:
            data["upload_credentials"] = credentials

        response = await self.publish(self.file_path, data, admin_token(self.prefs))
        if response is None or response.status_code != 201:
            raise UploadFailedError(f"Upload failed: {api.error_detail(response)}")

        if snapshot.author.strip():
            self.prefs.set(LAST_AUTHOR, snapshot.author.strip())
        record = response.json()
        logger.info(f"Image published: {record.get('id')} ({record.get('slug')})")
        return record
