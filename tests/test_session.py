from vane_api.session import SessionStore, build_fernet


def test_values_are_sealed():
    raw = {}
    session = SessionStore(raw, build_fernet("secret"))

    session.set("github_id", "123")

    assert raw["github_id"] != "123"
    assert session.get("github_id") == "123"


def test_missing_and_foreign_values():
    raw = {}
    SessionStore(raw, build_fernet("one")).set("uid", "u1")
    other = SessionStore(raw, build_fernet("two"))

    assert other.get("nothing", "default") == "default"
    assert other.get("uid") is None
    assert "uid" not in raw


def test_pop_and_clear():
    raw = {}
    session = SessionStore(raw, build_fernet("secret"))
    session.set("state", "abc")
    session.set("uid", "u1")

    assert session.pop("state") == "abc"
    assert "state" not in raw
    session.clear()
    assert raw == {}
