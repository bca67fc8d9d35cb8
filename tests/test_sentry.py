"""Tests for the Sentry event filter and init guard."""

from kitnet.auth import AuthenticationFailed
from kitnet.config import Settings
from kitnet.integrations.sentry import _filter_events, init_sentry
from kitnet.storage import StoreUnavailable


def _hint(exc):
    return {"exc_info": (type(exc), exc, None)}


def test_skips_without_dsn():
    assert init_sentry(Settings(sentry_dsn="")) is False


def test_drops_auth_errors():
    exc = AuthenticationFailed()
    assert _filter_events({"request": {}}, _hint(exc)) is None


def test_keeps_store_errors_and_scrubs_credentials():
    event = {
        "request": {
            "headers": {"Authorization": "abc123", "Accept": "application/json"},
            "data": {"password": "pw1"},
        }
    }
    result = _filter_events(event, _hint(StoreUnavailable("down")))

    assert result is not None
    assert result["request"]["headers"]["Authorization"] == "[Filtered]"
    assert result["request"]["headers"]["Accept"] == "application/json"
    assert result["request"]["data"] == "[Filtered]"
