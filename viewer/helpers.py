from typing import Optional
from viewer.preferences import ADMIN_SESSION, Preferences

def admin_token(prefs: Preferences) -> Optional[str]:
    """Session token saved by a successful login, if any"""
    return prefs.get(ADMIN_SESSION) or None

def is_admin(prefs: Preferences) -> bool:
    return admin_token(prefs) is not None

def normalize_slug(suggested: str) -> str:
    return suggested.lower().replace(" ", "-")
