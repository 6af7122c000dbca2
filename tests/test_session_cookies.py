"""
Session cookie and redirect helper tests
"""

from types import SimpleNamespace

from starlette.responses import Response

from saas_template.utils.session_cookies import (
    apply_session_changes, forget_session, remember_session, write_session_cookies
)
from saas_template.utils.templating import safe_redirect_path

SESSION = {'access_token': 'access-token', 'refresh_token': 'refresh-token', 'expires_at': 2_000_000_000}


def set_cookies(response):
    return response.headers.getlist("set-cookie")


class TestSessionCookies:
    def test_write_session_cookies(self):
        response = Response()
        write_session_cookies(response, SESSION)

        headers = set_cookies(response)
        access = next(h for h in headers if h.startswith("sb-access-token="))
        expires = next(h for h in headers if h.startswith("sb-expires-at="))
        assert "HttpOnly" in access
        assert "Path=/" in access
        assert "SameSite=lax" in access
        assert "Max-Age=2592000" in access
        assert "2000000000" in expires
        assert "HttpOnly" not in expires

    def test_remember_then_apply(self):
        request = SimpleNamespace(state=SimpleNamespace())
        response = Response()

        forget_session(request)
        remember_session(request, SESSION)
        apply_session_changes(request, response)

        access = next(h for h in set_cookies(response) if h.startswith("sb-access-token="))
        assert access.startswith("sb-access-token=access-token")

    def test_forget_clears_all_cookies(self):
        request = SimpleNamespace(state=SimpleNamespace())
        response = Response()

        forget_session(request)
        apply_session_changes(request, response)

        cleared = [h for h in set_cookies(response) if "Max-Age=0" in h]
        assert len(cleared) == 3

    def test_nothing_decided(self):
        request = SimpleNamespace(state=SimpleNamespace())
        response = Response()

        apply_session_changes(request, response)

        assert set_cookies(response) == []


class TestSafeRedirect:
    def test_same_site_path(self):
        assert safe_redirect_path("/app/billing", "/alerts") == "/app/billing"

    def test_rejects_other_hosts(self):
        assert safe_redirect_path("https://evil.example.com/", "/alerts") == "/alerts"
        assert safe_redirect_path("//evil.example.com", "/alerts") == "/alerts"
        assert safe_redirect_path("/\\evil.example.com", "/alerts") == "/alerts"
        assert safe_redirect_path("app", "/alerts") == "/alerts"

    def test_empty(self):
        assert safe_redirect_path(None, "/alerts") == "/alerts"
        assert safe_redirect_path("", "/alerts") == "/alerts"
