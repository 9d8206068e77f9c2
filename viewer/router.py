"""Fragment-based navigation.

The router owns the current route. A location fragment is only a
serialization of that route: ``handle_fragment`` parses one into a route and
``fragment_for`` turns a view back into a fragment.

Only ``p/<slug>`` needs a lookup. When fragments change faster than slugs
resolve, the newest navigation wins: the older lookup task is cancelled and
any result it still produces is dropped.
"""
import asyncio
import logging
import os
from typing import Awaitable, Callable, List, Optional

from viewer import api
from viewer.states import DETAIL_PREFIX, HOME, STATIC_FRAGMENTS, Route, View

logger = logging.getLogger(__name__)

ADMIN_FRAGMENT = os.getenv("VIEWER_ADMIN_FRAGMENT", "vault-admin")

Listener = Callable[[Route], None]
SlugResolver = Callable[[str], Awaitable[Optional[dict]]]


def normalize_fragment(fragment: Optional[str]) -> str:
    return (fragment or "").lstrip("#")


def fragment_for(view: View, slug: Optional[str] = None, admin_fragment: str = ADMIN_FRAGMENT) -> Optional[str]:
    """Fragment for a view, or None when the view cannot be addressed (detail without a slug)."""
    if view == View.HOME:
        return ""
    if view == View.ADMIN:
        return admin_fragment
    if view == View.DETAIL:
        return f"{DETAIL_PREFIX}{slug}" if slug else None
    return view.value


class NavigationRouter:
    def __init__(self, resolve_slug: SlugResolver = api.get_image_by_slug, admin_fragment: str = ADMIN_FRAGMENT):
        self.resolve_slug = resolve_slug
        self.admin_fragment = admin_fragment
        self.state: Route = HOME
        self.fragment = ""
        self._listeners: List[Listener] = []
        self._generation = 0
        self._pending: Optional[asyncio.Task] = None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    async def start(self, fragment: Optional[str] = "") -> Route:
        """Compute the initial route from the fragment the app was opened with."""
        return await self.handle_fragment(fragment)

    async def handle_fragment(self, fragment: Optional[str]) -> Route:
        """Apply a fragment change and return the route that is current afterwards."""
        fragment = normalize_fragment(fragment)
        self.fragment = fragment
        self._generation += 1
        generation = self._generation

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            self._pending = None

        if fragment == self.admin_fragment:
            return self._apply(Route(View.ADMIN), generation)
        if fragment in STATIC_FRAGMENTS:
            return self._apply(Route(STATIC_FRAGMENTS[fragment]), generation)
        if not fragment.startswith(DETAIL_PREFIX):
            return self._apply(HOME, generation)

        slug = fragment[len(DETAIL_PREFIX):].split("/")[0]
        if not slug:
            return self._apply(HOME, generation)

        task = asyncio.ensure_future(self._lookup(slug))
        self._pending = task
        try:
            image = await task
        except asyncio.CancelledError:
            if generation == self._generation:
                raise
            # Superseded by a newer navigation
            return self.state
        finally:
            if self._pending is task:
                self._pending = None

        route = Route(View.DETAIL, image_id=image["id"], slug=slug) if image else HOME
        return self._apply(route, generation)

    async def navigate(self, view: View, slug: Optional[str] = None) -> Route:
        fragment = fragment_for(view, slug, self.admin_fragment)
        if fragment is None:
            logger.debug(f"Ignoring navigation to {view.value} without a slug")
            return self.state
        return await self.handle_fragment(fragment)

    async def _lookup(self, slug: str) -> Optional[dict]:
        try:
            return await self.resolve_slug(slug)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error resolving slug '{slug}': {e}")
            return None

    def _apply(self, route: Route, generation: int) -> Route:
        if generation != self._generation:
            logger.debug(f"Dropping stale route {route}")
            return self.state
        changed = route != self.state
        self.state = route
        if changed:
            for listener in list(self._listeners):
                listener(route)
        return route
