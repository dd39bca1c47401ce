import pytest
from django.db import OperationalError
from django.http import HttpResponse
from django.test import RequestFactory

from apps.core import background
from apps.core.errors import Conflict, NotFound
from apps.core.handlers import shop_exception_handler
from apps.core.middleware import MethodOverrideMiddleware
from apps.core.tx import is_retryable, retry_on_tx_failure


class Deadlock(OperationalError):
    pgcode = "40P01"


def echo_method(request):
    return HttpResponse(request.method)


@pytest.mark.parametrize("path,headers,expected", [
    ("/x/?_method=PUT", {}, "PUT"),
    ("/x/?_method=delete", {}, "DELETE"),
    ("/x/", {"HTTP_X_HTTP_METHOD_OVERRIDE": "PATCH"}, "PATCH"),
    ("/x/?_method=GET", {}, "POST"),
    ("/x/", {}, "POST"),
])
def test_method_override(path, headers, expected):
    request = RequestFactory().post(path, **headers)
    response = MethodOverrideMiddleware(echo_method)(request)
    assert response.content.decode() == expected


def test_get_is_never_overridden():
    request = RequestFactory().get("/x/?_method=DELETE")
    assert MethodOverrideMiddleware(echo_method)(request).content == b"GET"


def test_retry_on_deadlock():
    calls = []

    @retry_on_tx_failure(max_attempts=3, backoff=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise Deadlock("deadlock detected")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3


def test_retry_gives_up_and_ignores_other_errors():
    @retry_on_tx_failure(max_attempts=2, backoff=0)
    def always():
        raise Deadlock("deadlock detected")

    with pytest.raises(OperationalError):
        always()
    assert not is_retryable(OperationalError("no such table: orders"))


def test_retryable_code_on_wrapped_driver_error():
    class DriverError(Exception):
        sqlstate = "40001"

    wrapped = OperationalError("could not commit")
    wrapped.__cause__ = DriverError()
    assert is_retryable(wrapped)
    assert is_retryable(OperationalError("database is locked"))


def test_background_task_errors_are_logged_not_raised(caplog):
    def explode():
        raise RuntimeError("boom")

    background.submit(explode)

    assert "background task explode failed" in caplog.text


def test_background_async_drops_when_full(settings, caplog, monkeypatch):
    settings.SHOP_NOTIFY_ASYNC = True

    class FullSlots:
        def acquire(self, blocking=True):
            return False

    monkeypatch.setattr(background, "_get_executor", lambda: (None, FullSlots()))
    background.submit(print, "never")

    assert "background queue full" in caplog.text


def test_shop_errors_render_envelope():
    res = shop_exception_handler(NotFound("Produto não encontrado"), {})
    assert res.status_code == 404
    assert res.data == {"success": False, "message": "Produto não encontrado"}
    assert shop_exception_handler(Conflict(), {}).status_code == 409
