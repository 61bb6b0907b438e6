"""Redirect unprefixed page paths to a locale-prefixed URL.

``/orders`` becomes ``/<locale>/orders`` where the locale comes from the
locale cookie when it names a supported locale, else the default. Asset,
API and file-like paths (anything containing a dot) are left alone.
"""

from __future__ import annotations

from collections.abc import Iterable

from flask import Flask, redirect, request
from werkzeug.routing import AnyConverter
from werkzeug.wrappers import Response


def path_has_locale(path: str, supported_locales: Iterable[str]) -> bool:
    return any(path == f"/{locale}" or path.startswith(f"/{locale}/") for locale in supported_locales)


def choose_locale(cookie_value: str | None, supported_locales: Iterable[str], default_locale: str) -> str:
    if cookie_value and cookie_value in tuple(supported_locales):
        return cookie_value
    return default_locale


def resolve_locale_redirect(
    path: str,
    cookie_value: str | None,
    *,
    supported_locales: Iterable[str],
    default_locale: str,
    passthrough_prefixes: Iterable[str],
) -> str | None:
    """Return the path to redirect to, or None when the request passes through."""
    supported_locales = tuple(supported_locales)
    if any(path.startswith(prefix) for prefix in passthrough_prefixes) or "." in path:
        return None
    if path_has_locale(path, supported_locales):
        return None
    locale = choose_locale(cookie_value, supported_locales, default_locale)
    return f"/{locale}{path}"


def make_locale_converter(supported_locales: Iterable[str]) -> type[AnyConverter]:
    """URL converter that only matches the given locale codes."""
    locales = tuple(supported_locales)

    class LocaleConverter(AnyConverter):
        def __init__(self, url_map, *args, **kwargs) -> None:
            super().__init__(url_map, *locales)

    return LocaleConverter


def register_locale_router(app: Flask) -> None:
    app.url_map.converters["locale"] = make_locale_converter(app.config["SUPPORTED_LOCALES"])

    @app.before_request
    def _redirect_to_locale() -> Response | None:
        target = resolve_locale_redirect(
            request.path,
            request.cookies.get(app.config["LOCALE_COOKIE_NAME"]),
            supported_locales=app.config["SUPPORTED_LOCALES"],
            default_locale=app.config["DEFAULT_LOCALE"],
            passthrough_prefixes=app.config["LOCALE_PASSTHROUGH_PREFIXES"],
        )
        if target is None:
            return None
        if request.query_string:
            target = f"{target}?{request.query_string.decode('utf-8', 'replace')}"
        app.logger.debug("locale redirect %s -> %s", request.path, target)
        return redirect(target, code=307)
