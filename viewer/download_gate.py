import asyncio
import logging
import os
import webbrowser
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

import aiofiles
import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from viewer import api

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN = 5
DOWNLOAD_DIR = os.getenv("VIEWER_DOWNLOAD_DIR", ".")


class GateState(str, Enum):
    IDLE = "idle"
    COUNTING = "counting"
    READY = "ready"
    FETCHING = "fetching"


class GateStateError(Exception):
    """An action was requested in a state that does not allow it."""


class SponsorSlot:
    """Sponsored content shown while the countdown runs.

    The base class shows nothing. Subclasses render whatever they like; the
    gate never waits on them and only promises to call ``teardown`` once.
    """

    def present(self, image: dict) -> None:
        pass

    def teardown(self) -> None:
        pass


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=4),
    retry=retry_if_exception_type(httpx.TimeoutException),
    reraise=True,
)
async def fetch_asset(url: str) -> bytes:
    async with api._client() as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.content


class DownloadGate:
    """Countdown in front of an image download.

    idle -> counting -> ready -> fetching -> idle, with cancel() going back to
    idle from counting or ready. Use it as an async context manager so the
    timer and sponsored content are released however the detail view is left.
    """

    def __init__(
        self,
        image: dict,
        countdown: int = DEFAULT_COUNTDOWN,
        tick_seconds: float = 1.0,
        sponsor: Optional[SponsorSlot] = None,
        download_dir: Optional[str] = None,
        fetch: Callable[[str], Awaitable[bytes]] = fetch_asset,
        record_download: Callable[[str], Awaitable[bool]] = api.record_download,
        open_url: Callable[[str], object] = webbrowser.open,
        on_tick: Optional[Callable[[int], None]] = None,
    ):
        self.image = image
        self.countdown = countdown
        self.tick_seconds = tick_seconds
        self.sponsor = sponsor or SponsorSlot()
        self.download_dir = Path(download_dir or DOWNLOAD_DIR)
        self.fetch = fetch
        self.record_download = record_download
        self.open_url = open_url
        self.on_tick = on_tick

        self.state = GateState.IDLE
        self.remaining = countdown
        self._timer: Optional[asyncio.Task] = None
        self._sponsor_active = False

    async def __aenter__(self) -> "DownloadGate":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        if self.state != GateState.IDLE:
            raise GateStateError(f"Cannot start countdown while {self.state.value}")
        self.state = GateState.COUNTING
        self.remaining = self.countdown
        self._present_sponsor()
        if self.remaining <= 0:
            self.state = GateState.READY
        else:
            self._timer = asyncio.create_task(self._run_timer())

    async def wait_ready(self) -> bool:
        """Wait for the countdown to finish. False if it was cancelled instead."""
        timer = self._timer
        if timer is not None:
            await asyncio.wait({timer})
        return self.state == GateState.READY

    def cancel(self) -> bool:
        if self.state not in (GateState.COUNTING, GateState.READY):
            return False
        self._stop_timer()
        self._teardown_sponsor()
        self.state = GateState.IDLE
        self.remaining = self.countdown
        logger.info(f"Download of {self.image.get('slug')} cancelled")
        return True

    async def download(self) -> Optional[Path]:
        """Fetch and save the image. Returns the saved path, or None after falling back to the browser."""
        if self.state != GateState.READY:
            raise GateStateError(f"Download is not available while {self.state.value}")
        self.state = GateState.FETCHING
        url = self.image["url"]
        try:
            try:
                content = await self.fetch(url)
                path = await self._save(content)
            except Exception as e:
                logger.error(f"Failed to download image: {e}")
                self._open_fallback(url)
                return None
            await self._record()
            return path
        finally:
            self._teardown_sponsor()
            self.state = GateState.IDLE
            self.remaining = self.countdown

    async def close(self) -> None:
        self._stop_timer()
        self._teardown_sponsor()
        if self.state in (GateState.COUNTING, GateState.READY):
            self.state = GateState.IDLE
            self.remaining = self.countdown

    async def _run_timer(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.tick_seconds)
            self.remaining -= 1
            if self.on_tick:
                self.on_tick(self.remaining)
        self.state = GateState.READY
        self._timer = None

    def _stop_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _present_sponsor(self) -> None:
        try:
            self.sponsor.present(self.image)
            self._sponsor_active = True
        except Exception as e:
            logger.warning(f"Sponsored content failed to render: {e}")

    def _teardown_sponsor(self) -> None:
        if not self._sponsor_active:
            return
        self._sponsor_active = False
        try:
            self.sponsor.teardown()
        except Exception as e:
            logger.warning(f"Sponsored content teardown failed: {e}")

    async def _save(self, content: bytes) -> Path:
        self.download_dir.mkdir(parents=True, exist_ok=True)
        name = os.path.basename(self.image.get("slug") or "").strip() or str(self.image["id"])
        path = self.download_dir / f"{name}.jpg"
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)
        logger.info(f"Saved {path}")
        return path

    async def _record(self) -> None:
        # The local count moves first; the server increment is fire-and-log
        self.image["download_count"] = self.image.get("download_count", 0) + 1
        try:
            if not await self.record_download(self.image["id"]):
                logger.warning(f"Download of {self.image['id']} was not recorded")
        except Exception as e:
            logger.error(f"Failed to record download: {e}")

    def _open_fallback(self, url: str) -> None:
        try:
            self.open_url(url)
        except Exception as e:
            logger.debug(f"Browser fallback failed: {e}")
