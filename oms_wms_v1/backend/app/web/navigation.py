from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from app.i18n.translations import LOCALE_NAMES, get_translations


@dataclass(frozen=True)
class MenuItem:
    key: str
    path: str
    label_key: str


MENU_ITEMS: tuple[MenuItem, ...] = (
    MenuItem("dashboard", "/", "nav_dashboard"),
    MenuItem("inbound-detail", "/inbound-detail", "nav_inbound_detail"),
)


def strip_locale(path: str, supported_locales: Iterable[str]) -> str:
    """``/en/inbound-detail`` -> ``/inbound-detail``; a bare locale maps to ``/``."""
    for locale in supported_locales:
        prefix = f"/{locale}"
        if path == prefix or path == f"{prefix}/":
            return "/"
        if path.startswith(f"{prefix}/"):
            return path[len(prefix):]
    return path or "/"


def build_sidebar(locale: str, current_path: str, supported_locales: Iterable[str]) -> list[dict[str, object]]:
    t = get_translations(locale)
    local_path = strip_locale(current_path, supported_locales)
    return [
        {
            "key": item.key,
            "label": t[item.label_key],
            "href": f"/{locale}{item.path}",
            "active": local_path == item.path,
        }
        for item in MENU_ITEMS
    ]


def build_locale_links(
    locale: str, current_path: str, supported_locales: Iterable[str], query_string: str = ""
) -> list[dict[str, object]]:
    supported_locales = tuple(supported_locales)
    local_path = strip_locale(current_path, supported_locales)
    suffix = f"?{query_string}" if query_string else ""
    return [
        {
            "locale": code,
            "label": LOCALE_NAMES.get(code, code),
            "href": f"/{code}{local_path}{suffix}",
            "current": code == locale,
        }
        for code in supported_locales
    ]
