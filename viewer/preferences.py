import json
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PREFERENCES_PATH = os.getenv("VIEWER_PREFERENCES_PATH", str(Path.home() / ".snapvault.json"))

ADMIN_SESSION = "snapvault_admin_token"
LAST_AUTHOR = "snapvault_last_author"
UPLOAD_CREDENTIALS = "snapvault_upload_credentials"


class Preferences:
    """Small string key-value store kept in a JSON file.

    Values are read once when the store is created and the whole file is
    rewritten on every change, so concurrent processes end up with whichever
    wrote last.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or PREFERENCES_PATH)
        self._values = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = str(value)
        self._save()

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._save()

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._values, indent=2), encoding="utf-8")
