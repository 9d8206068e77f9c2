from unittest.mock import AsyncMock, patch

import httpx
import pytest

from viewer import main
from viewer.preferences import ADMIN_SESSION, Preferences


@pytest.fixture
def prefs(tmp_path):
    return Preferences(str(tmp_path / "prefs.json"))


@pytest.mark.asyncio
async def test_upload_requires_login(prefs, tmp_path):
    args = main.build_parser().parse_args(["upload", str(tmp_path / "lake.jpg"), "--category", "Nature"])

    with patch.object(main, "UploadSession") as session:
        assert await args.func(args, prefs) == 1
    session.assert_not_called()


@pytest.mark.asyncio
async def test_delete_requires_login(prefs):
    args = main.build_parser().parse_args(["delete", "abc"])

    with patch.object(main.api, "delete_image", AsyncMock()) as delete:
        assert await args.func(args, prefs) == 1
    delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_sends_session_token(prefs):
    prefs.set(ADMIN_SESSION, "tok")
    args = main.build_parser().parse_args(["delete", "abc"])

    with patch.object(main.api, "delete_image", AsyncMock(return_value=httpx.Response(204))) as delete:
        assert await args.func(args, prefs) == 0
    delete.assert_awaited_once_with("abc", "tok")
