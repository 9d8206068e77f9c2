from viewer.helpers import admin_token, is_admin, normalize_slug
from viewer.preferences import ADMIN_SESSION, LAST_AUTHOR, Preferences


def test_values_persist_between_instances(tmp_path):
    path = str(tmp_path / "prefs.json")
    Preferences(path).set(LAST_AUTHOR, "Ada")

    assert Preferences(path).get(LAST_AUTHOR) == "Ada"


def test_last_write_wins(tmp_path):
    path = str(tmp_path / "prefs.json")
    first, second = Preferences(path), Preferences(path)

    first.set(LAST_AUTHOR, "Ada")
    second.set(LAST_AUTHOR, "Grace")

    assert Preferences(path).get(LAST_AUTHOR) == "Grace"


def test_unreadable_file_starts_empty(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{not json")

    assert Preferences(str(path)).get(LAST_AUTHOR) is None


def test_admin_session(tmp_path):
    prefs = Preferences(str(tmp_path / "prefs.json"))
    assert not is_admin(prefs)

    prefs.set(ADMIN_SESSION, "token")
    assert admin_token(prefs) == "token"

    prefs.remove(ADMIN_SESSION)
    assert not is_admin(prefs)


def test_normalize_slug():
    assert normalize_slug("Misty Mountain Morning") == "misty-mountain-morning"
