from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, url_for
from werkzeug.wrappers import Response

from app.i18n.translations import get_translations, status_label
from app.security.request_context import get_client_ip
from app.services.approval_status import ApprovalStatus, can_transition
from app.services.inbound_service import (
    ValidationError,
    change_inbound_status,
    remove_inbound_request,
    submit_inbound_request,
)
from app.services.inbound_store import InboundRequestNotFound, InvalidStatusTransition, get_inbound_store
from app.web.navigation import build_locale_links, build_sidebar

LOCALE_COOKIE_MAX_AGE = 60 * 60 * 24 * 365
RECENT_REQUEST_LIMIT = 20

web_bp = Blueprint("web", __name__, url_prefix="/<locale:locale>")


@web_bp.url_value_preprocessor
def _pull_locale(endpoint: str | None, values: dict | None) -> None:
    g.locale = (values or {}).pop("locale", None)


@web_bp.url_defaults
def _add_locale(endpoint: str, values: dict) -> None:
    if "locale" not in values and getattr(g, "locale", None):
        values["locale"] = g.locale


@web_bp.context_processor
def _inject_page_context() -> dict[str, object]:
    locale = g.locale
    supported = current_app.config["SUPPORTED_LOCALES"]
    return {
        "locale": locale,
        "t": get_translations(locale),
        "sidebar_items": build_sidebar(locale, request.path, supported),
        "locale_links": build_locale_links(
            locale, request.path, supported, request.query_string.decode("utf-8", "replace")
        ),
        "status_label": lambda status: status_label(status, locale),
    }


@web_bp.after_request
def _remember_locale(response: Response) -> Response:
    locale = getattr(g, "locale", None)
    if locale:
        response.set_cookie(
            current_app.config["LOCALE_COOKIE_NAME"], locale, max_age=LOCALE_COOKIE_MAX_AGE, samesite="Lax"
        )
    return response


@web_bp.get("/")
def index() -> str:
    return _render_index(form={"items": []}, error=None)


@web_bp.post("/")
def submit_inbound_form() -> Response | tuple[str, int]:
    form = request.form
    payload = {
        "poNumber": form.get("poNumber", ""),
        "supplierName": form.get("supplierName", ""),
        "expectedDate": form.get("expectedDate", ""),
        "memo": form.get("memo", ""),
        "items": _items_from_form(),
    }
    try:
        record = submit_inbound_request(payload, ip_address=get_client_ip())
    except ValidationError as exc:
        return _render_index(form=payload, error=exc.message), 400

    flash(get_translations(g.locale)["submitted"], "success")
    return redirect(url_for("web.inbound_detail", id=record.id), code=303)


@web_bp.get("/inbound-detail")
def inbound_detail() -> str | tuple[str, int]:
    request_id = request.args.get("id", "").strip()
    store = get_inbound_store()
    if not request_id:
        return render_template("inbound/detail.html", record=None, requests=store.get_all(), next_statuses=[])

    record = store.get_by_id(request_id)
    if record is None:
        page = render_template(
            "inbound/detail.html", record=None, requests=[], next_statuses=[], missing_id=request_id
        )
        return page, 404

    next_statuses = [
        status
        for status in ApprovalStatus
        if not store.enforce_transitions or can_transition(record.approval_status, status)
    ]
    return render_template("inbound/detail.html", record=record, requests=[], next_statuses=next_statuses)


@web_bp.post("/inbound-detail/<request_id>/status")
def update_status_form(request_id: str) -> Response:
    payload = {"status": request.form.get("status", ""), "reason": request.form.get("reason") or None}
    try:
        change_inbound_status(request_id, payload, ip_address=get_client_ip())
    except InboundRequestNotFound:
        abort(404)
    except (ValidationError, InvalidStatusTransition) as exc:
        flash(getattr(exc, "message", str(exc)), "error")

    return redirect(url_for("web.inbound_detail", id=request_id), code=303)


@web_bp.post("/inbound-detail/<request_id>/delete")
def delete_form(request_id: str) -> Response:
    try:
        remove_inbound_request(request_id, ip_address=get_client_ip())
    except InboundRequestNotFound:
        abort(404)

    flash(get_translations(g.locale)["deleted"], "success")
    return redirect(url_for("web.index"), code=303)


def _render_index(*, form: dict[str, object], error: str | None) -> str:
    records = get_inbound_store().get_all()
    recent = list(reversed(records))[:RECENT_REQUEST_LIMIT]
    return render_template(
        "inbound/index.html",
        form=form,
        error=error,
        requests=recent,
        default_status=ApprovalStatus.PENDING_APPROVAL,
    )


def _items_from_form() -> list[dict[str, object]]:
    rows = zip(
        request.form.getlist("skuCode"),
        request.form.getlist("productName"),
        request.form.getlist("quantity"),
        request.form.getlist("unit"),
    )
    items: list[dict[str, object]] = []
    for sku_code, product_name, quantity, unit in rows:
        if not sku_code.strip() and not product_name.strip():
            continue
        quantity = quantity.strip()
        items.append(
            {
                "skuCode": sku_code,
                "productName": product_name,
                "quantity": int(quantity) if quantity.isdigit() else quantity,
                "unit": unit,
            }
        )
    return items
