import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path
from dotenv import load_dotenv

from viewer import api
from viewer.download_gate import DEFAULT_COUNTDOWN, DownloadGate
from viewer.helpers import admin_token, is_admin
from viewer.preferences import ADMIN_SESSION, LAST_AUTHOR, UPLOAD_CREDENTIALS, Preferences
from viewer.router import NavigationRouter
from viewer.states import View
from viewer.upload import UploadDraft, UploadFailedError, UploadInputError, UploadSession

# Load environment variables from .env file in project root
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


def _print_image(image: dict) -> None:
    print(f"{image['title']}  [{image['category']}]  by {image['author']}")
    print(f"  {image['description']}")
    print(f"  #{' #'.join(image['keywords'])}" if image['keywords'] else "  (no keywords)")
    print(f"  {image['url']}  ({image['download_count']} downloads)")


async def cmd_open(args, prefs: Preferences) -> int:
    router = NavigationRouter()
    route = await router.start(args.fragment)
    print(f"View: {route.view.value}")
    if route.view == View.HOME:
        data = await api.get_images(args.query, args.category)
        for image in (data or {}).get("items", []):
            print(f"- {image['title']} (#p/{image['slug']})")
    elif route.view == View.DETAIL:
        image = await api.get_image(route.image_id)
        if image is None:
            print("Image not found.")
            return 1
        _print_image(image)
        related = await api.get_related(route.image_id)
        if related:
            print("Related:")
            for entry in related:
                print(f"- {entry['image']['title']} (score {entry['score']})")
    elif route.view == View.ADMIN:
        print("Logged in." if is_admin(prefs) else "Not logged in; run `login` first.")
    return 0


async def cmd_download(args, prefs: Preferences) -> int:
    image = await api.get_image_by_slug(args.slug)
    if image is None:
        print("Image not found.")
        return 1

    def on_tick(remaining: int) -> None:
        if remaining:
            print(f"Download available in {remaining}s...")

    async with DownloadGate(image, countdown=args.countdown, download_dir=args.out, on_tick=on_tick) as gate:
        await gate.start()
        if not await gate.wait_ready():
            return 1
        path = await gate.download()
    if path:
        print(f"Saved {path}")
    return 0


async def cmd_login(args, prefs: Preferences) -> int:
    password = args.password or getpass.getpass("Admin password: ")
    token = await api.login(password)
    if not token:
        print("Invalid Password")
        return 1
    prefs.set(ADMIN_SESSION, token)
    print("Logged in.")
    return 0


async def cmd_logout(args, prefs: Preferences) -> int:
    prefs.remove(ADMIN_SESSION)
    print("Logged out.")
    return 0


async def cmd_upload(args, prefs: Preferences) -> int:
    if not is_admin(prefs):
        print("🚫 Log in first.")
        return 1
    if args.upload_credentials:
        prefs.set(UPLOAD_CREDENTIALS, args.upload_credentials)

    draft = UploadDraft(
        category=args.category,
        author=args.author or prefs.get(LAST_AUTHOR, "") or "",
    )
    session = UploadSession(prefs, args.file, draft)
    if not args.no_analyze:
        print("Analyzing image...")
        await session.start_analysis()

    # Explicit flags win over suggestions
    for field in ("title", "description", "keywords", "slug"):
        value = getattr(args, field)
        if value:
            setattr(session.draft, field, value)

    try:
        record = await session.submit()
    except (UploadInputError, UploadFailedError) as e:
        print(f"❌ {e}")
        return 1
    print(f"✅ Published {record['title']} as #p/{record['slug']}")
    return 0


async def cmd_delete(args, prefs: Preferences) -> int:
    if not is_admin(prefs):
        print("🚫 Log in first.")
        return 1
    response = await api.delete_image(args.image_id, admin_token(prefs))
    if response is None or response.status_code != 204:
        print(f"❌ Delete failed: {api.error_detail(response)}")
        return 1
    print("Deleted.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="viewer", description="SnapVault gallery client")
    parser.add_argument("--prefs", help="Preferences file")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("open", help="Resolve a fragment and show the view")
    p.add_argument("fragment", nargs="?", default="")
    p.add_argument("--query", "-q", default="")
    p.add_argument("--category")
    p.set_defaults(func=cmd_open)

    p = sub.add_parser("download", help="Download an image through the countdown")
    p.add_argument("slug")
    p.add_argument("--out", default=None)
    p.add_argument("--countdown", type=int, default=DEFAULT_COUNTDOWN)
    p.set_defaults(func=cmd_download)

    p = sub.add_parser("login", help="Log in as administrator")
    p.add_argument("--password")
    p.set_defaults(func=cmd_login)

    p = sub.add_parser("logout", help="Forget the admin session")
    p.set_defaults(func=cmd_logout)

    p = sub.add_parser("upload", help="Publish an image")
    p.add_argument("file")
    p.add_argument("--category", required=True)
    p.add_argument("--title")
    p.add_argument("--description")
    p.add_argument("--keywords", help="Comma separated")
    p.add_argument("--slug")
    p.add_argument("--author")
    p.add_argument("--upload-credentials", dest="upload_credentials", help="Asset host account as api_key:api_secret")
    p.add_argument("--no-analyze", action="store_true")
    p.set_defaults(func=cmd_upload)

    p = sub.add_parser("delete", help="Delete an image by id")
    p.add_argument("image_id")
    p.set_defaults(func=cmd_delete)
    return parser


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    prefs = Preferences(args.prefs)
    sys.exit(asyncio.run(args.func(args, prefs)))


if __name__ == "__main__":
    main()
