import pytest

from devportal.infrastructure.http import (
    CsrfTokens,
    CsrfTokenStore,
    LoginCredentials,
    Session,
)


def test_csrf_fields_must_be_set_together() -> None:
    with pytest.raises(ValueError):
        Session(cookie="myacinfo=abcdef;", csrf_token="top_secret")
    with pytest.raises(ValueError):
        Session(cookie="myacinfo=abcdef;", csrf_timestamp="123123")


def test_session_headers() -> None:
    session = Session(cookie="myacinfo=abcdef;")
    assert session.headers() == {"Cookie": "myacinfo=abcdef;"}

    with_tokens = session.with_csrf(CsrfTokens("top_secret", "123123"))
    assert with_tokens.headers() == {
        "Cookie": "myacinfo=abcdef;",
        "csrf": "top_secret",
        "csrf_ts": "123123",
    }
    assert session.csrf is None
    assert with_tokens.with_csrf(None).csrf is None


def test_with_team_returns_new_value() -> None:
    session = Session(cookie="myacinfo=abcdef;")

    updated = session.with_team("XXXXXXXXXX")

    assert updated.default_team_id == "XXXXXXXXXX"
    assert session.default_team_id is None


def test_csrf_store_set_get_clear() -> None:
    store = CsrfTokenStore()
    assert store.get() is None

    stored = store.set("top_secret", "123123")
    assert store.get() == stored == CsrfTokens("top_secret", "123123")

    store.clear()
    assert store.get() is None


def test_credentials_hide_password() -> None:
    credentials = LoginCredentials(username="user@example.com", password="so_secret")

    assert "so_secret" not in repr(credentials)
    assert credentials.is_complete
    assert not LoginCredentials(username="user@example.com").is_complete
