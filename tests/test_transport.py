import logging
import time

import pytest
import requests

from devportal.app.config import PortalSettings
from devportal.infrastructure.http import (
    PortalRequest,
    RetryingTransport,
    Session,
    SessionExpired,
    TransportError,
    TransportTimeout,
    UnexpectedResponse,
    parse_json,
)

from portal_fakes import FakeHttpSession, make_response

URL = "https://developer.apple.com/services-account/QH65B2/account/ios/device/listDevices.action"


def _transport(handler, **kwargs) -> tuple[RetryingTransport, FakeHttpSession]:
    http = FakeHttpSession(handler)
    kwargs.setdefault("sleep", lambda _delay: None)
    return RetryingTransport(session=http, **kwargs), http


def test_attaches_cookie_and_csrf_headers() -> None:
    transport, http = _transport(lambda call: make_response(json_body={"devices": []}))
    session = Session(cookie="myacinfo=abcdef;", csrf_token="top_secret", csrf_timestamp="123123")

    transport.dispatch(PortalRequest("POST", URL, data={"teamId": "X"}), session).unwrap()

    headers = http.calls[0].headers
    assert headers["Cookie"] == "myacinfo=abcdef;"
    assert headers["csrf"] == "top_secret"
    assert headers["csrf_ts"] == "123123"
    assert headers["User-Agent"].startswith("devportal/")


def test_omits_csrf_headers_until_known() -> None:
    transport, http = _transport(lambda call: make_response(json_body={}))

    transport.dispatch(PortalRequest("GET", URL), Session(cookie="myacinfo=abcdef;"))

    assert "csrf" not in http.calls[0].headers
    assert "csrf_ts" not in http.calls[0].headers


def test_retries_timeouts_before_giving_up() -> None:
    timeout = 0.02

    def always_times_out(call):
        time.sleep(timeout)
        raise requests.ReadTimeout("read timed out")

    http = FakeHttpSession(always_times_out)
    transport = RetryingTransport(
        session=http,
        timeout_seconds=timeout,
        max_retries=5,
        backoff_base_seconds=timeout,
    )

    start = time.monotonic()
    with pytest.raises(TransportTimeout) as excinfo:
        transport.execute(PortalRequest("POST", URL))
    elapsed = time.monotonic() - start

    assert len(http.calls) >= 6
    assert excinfo.value.attempts == len(http.calls)
    assert isinstance(excinfo.value.__cause__, requests.Timeout)
    assert elapsed > 10 * timeout


def test_backoff_doubles_between_attempts() -> None:
    delays: list[float] = []

    def times_out(call):
        raise requests.ConnectTimeout("connect timed out")

    transport, http = _transport(
        times_out,
        timeout_seconds=0.1,
        max_retries=5,
        backoff_base_seconds=0.5,
        sleep=delays.append,
    )

    result = transport.dispatch(PortalRequest("GET", URL))

    assert not result.ok
    assert isinstance(result.error, TransportTimeout)
    assert result.attempts == 6
    assert delays == [0.5, 1.0, 2.0, 4.0, 8.0]


def test_backoff_never_shorter_than_timeout() -> None:
    delays: list[float] = []

    def times_out(call):
        raise requests.ReadTimeout("read timed out")

    transport, _ = _transport(
        times_out, timeout_seconds=3.0, backoff_base_seconds=1.0, sleep=delays.append)

    transport.dispatch(PortalRequest("GET", URL))

    assert delays == [3.0, 3.0, 4.0, 8.0, 16.0]


def test_default_settings_wait_longer_than_ten_timeouts() -> None:
    settings = PortalSettings()
    clock = [0.0]

    def times_out(call):
        clock[0] += call.timeout
        raise requests.ReadTimeout("read timed out")

    def fake_sleep(delay: float) -> None:
        clock[0] += delay

    http = FakeHttpSession(times_out)
    transport = RetryingTransport.from_settings(settings, session=http, sleep=fake_sleep)

    with pytest.raises(TransportTimeout):
        transport.execute(PortalRequest("POST", URL))

    assert len(http.calls) >= 6
    assert all(call.timeout == settings.request_timeout_seconds for call in http.calls)
    assert clock[0] > 10 * settings.request_timeout_seconds


def test_giving_up_logs_last_timeout(caplog: pytest.LogCaptureFixture) -> None:
    def times_out(call):
        raise requests.ReadTimeout("read timed out")

    transport, _ = _transport(times_out)

    with caplog.at_level(logging.ERROR, logger="devportal"):
        transport.dispatch(PortalRequest("GET", URL))

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "Giving up after 6 timed out attempts" in errors[0].getMessage()
    assert isinstance(errors[0].exc_info[1], requests.ReadTimeout)


def test_retry_budget_cannot_drop_below_five() -> None:
    def times_out(call):
        raise requests.ReadTimeout("slow")

    transport, http = _transport(times_out, max_retries=0)

    result = transport.dispatch(PortalRequest("GET", URL))

    assert transport.max_retries == 5
    assert transport.max_attempts == 6
    assert result.attempts == len(http.calls) == 6


def test_timeout_then_success_returns_response() -> None:
    outcomes = [requests.ReadTimeout("slow"), requests.ReadTimeout("slow")]

    def flaky(call):
        if outcomes:
            raise outcomes.pop(0)
        return make_response(json_body={"devices": [{"name": "iPhone"}]})

    transport, http = _transport(flaky)

    result = transport.dispatch(PortalRequest("POST", URL))

    assert result.ok
    assert result.attempts == 3
    assert parse_json(result.response, "devices") == [{"name": "iPhone"}]


def test_connection_errors_are_not_retried() -> None:
    def refused(call):
        raise requests.ConnectionError("connection refused")

    transport, http = _transport(refused)

    with pytest.raises(TransportError) as excinfo:
        transport.execute(PortalRequest("GET", URL))

    assert not isinstance(excinfo.value, TransportTimeout)
    assert len(http.calls) == 1


def test_redirect_to_login_means_session_expired() -> None:
    transport, _ = _transport(
        lambda call: make_response(
            302, headers={"Location": "https://idmsa.apple.com/IDMSWebAuth/login?appIdKey=1"}))

    with pytest.raises(SessionExpired):
        transport.execute(PortalRequest("POST", URL))


@pytest.mark.parametrize("status", [401, 403])
def test_unauthorized_status_means_session_expired(status: int) -> None:
    transport, _ = _transport(lambda call: make_response(status))

    with pytest.raises(SessionExpired):
        transport.execute(PortalRequest("POST", URL))


def test_expected_redirect_is_returned() -> None:
    transport, _ = _transport(
        lambda call: make_response(302, headers={"Location": "https://idmsa.apple.com/login"}))

    response = transport.execute(PortalRequest("GET", URL, expect_redirect=True))

    assert response.status_code == 302


def test_server_error_becomes_transport_error() -> None:
    transport, _ = _transport(lambda call: make_response(500, text="oops"))

    with pytest.raises(TransportError) as excinfo:
        transport.execute(PortalRequest("POST", URL))

    assert excinfo.value.status_code == 500


def test_application_error_message_is_verbatim() -> None:
    message = "Name already taken.\\nPlease pick another one."
    transport, _ = _transport(
        lambda call: make_response(json_body={"resultCode": 35, "userString": message}))

    with pytest.raises(UnexpectedResponse) as excinfo:
        transport.execute(PortalRequest("POST", URL))

    assert str(excinfo.value) == message
    assert "\n" not in excinfo.value.message
    assert excinfo.value.result_code == 35


def test_result_string_used_when_user_string_missing() -> None:
    transport, _ = _transport(
        lambda call: make_response(json_body={"resultCode": 9, "resultString": "Bad request"}))

    result = transport.dispatch(PortalRequest("POST", URL))

    assert isinstance(result.error, UnexpectedResponse)
    assert result.error.message == "Bad request"


def test_zero_result_code_is_success() -> None:
    transport, _ = _transport(
        lambda call: make_response(json_body={"resultCode": 0, "resultString": None}))

    response = transport.execute(PortalRequest("POST", URL))

    assert parse_json(response) == {"resultCode": 0, "resultString": None}


def test_parse_json_requires_expected_key() -> None:
    with pytest.raises(UnexpectedResponse):
        parse_json(make_response(json_body={"resultCode": 0}), "devices")


def test_parse_json_rejects_html() -> None:
    with pytest.raises(UnexpectedResponse):
        parse_json(make_response(text="<html></html>"))
