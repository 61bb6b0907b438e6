from __future__ import annotations

import pytest

from app.middleware.locale_router import resolve_locale_redirect

LOCALES = ("ko", "en", "vi")
PASSTHROUGH = ("/static", "/api", "/health")


def _resolve(path, cookie=None):
    return resolve_locale_redirect(
        path,
        cookie,
        supported_locales=LOCALES,
        default_locale="ko",
        passthrough_prefixes=PASSTHROUGH,
    )


@pytest.mark.parametrize(
    "path",
    ["/ko", "/en/", "/vi/inbound-detail", "/api/inbound-requests", "/static/app.css", "/favicon.ico", "/health"],
)
def test_passes_through(path):
    assert _resolve(path) is None


@pytest.mark.parametrize(
    ("path", "cookie", "expected"),
    [
        ("/", None, "/ko/"),
        ("/inbound-detail", "en", "/en/inbound-detail"),
        ("/inbound-detail", "vi", "/vi/inbound-detail"),
        ("/inbound-detail", "fr", "/ko/inbound-detail"),
        ("/kor", None, "/ko/kor"),
        ("/english", "en", "/en/english"),
    ],
)
def test_redirect_targets(path, cookie, expected):
    assert _resolve(path, cookie) == expected


def test_client_redirect_uses_cookie_and_keeps_query(client):
    client.set_cookie("NEXT_LOCALE", "vi")

    response = client.get("/inbound-detail?id=PO-2024-001")

    assert response.status_code == 307
    assert response.headers["Location"].endswith("/vi/inbound-detail?id=PO-2024-001")


def test_client_redirect_defaults_to_korean(client):
    response = client.get("/")

    assert response.status_code == 307
    assert response.headers["Location"].endswith("/ko/")


def test_api_and_health_are_not_redirected(client):
    assert client.get("/api/inbound-requests").status_code == 200
    assert client.get("/health").get_json() == {"status": "ok"}


def test_dotted_path_is_not_redirected(client):
    assert client.get("/robots.txt").status_code == 404


@pytest.mark.parametrize("path", ["/favicon.ico", "/api", "/health.json"])
def test_single_segment_passthrough_is_not_slash_redirected(client, path):
    response = client.get(path)

    assert response.status_code == 404
    assert "Location" not in response.headers


def test_bare_locale_path_serves_dashboard(client):
    response = client.get("/en/")
    assert response.status_code == 200
