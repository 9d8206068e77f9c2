from dataclasses import dataclass
from enum import Enum
from typing import Optional

class View(str, Enum):
    HOME = "home"
    DETAIL = "detail"
    ADMIN = "admin"
    ABOUT = "about"
    PRIVACY = "privacy"

# Fragments that map straight to a static view, no lookup needed
STATIC_FRAGMENTS = {
    "about": View.ABOUT,
    "privacy": View.PRIVACY,
}
DETAIL_PREFIX = "p/"

@dataclass(frozen=True)
class Route:
    view: View
    image_id: Optional[str] = None
    slug: Optional[str] = None

HOME = Route(View.HOME)
