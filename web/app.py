"""Flask application for the web pop maker."""

import os
from io import BytesIO
from typing import Optional
from urllib.parse import urlparse

from flask import Flask, jsonify, request, send_file

from export.badge_renderer import render_badge_image
from export.page_rasterizer import DEFAULT_DISPLAY_SCALE, DEFAULT_DPI, render_page
from export.pdf_export import export_pages_pdf
from export.pop_card import make_pop_compositor
from models.custom_badge import CustomBadgeInput
from models.errors import (
    BadgeCatalogError,
    CapacityExceeded,
    DuplicateName,
    NotFound,
    PersistenceError,
    ValidationError,
)
from models.page_layout import PageDescriptor, generate_a4_layout
from utils.discogs_url import parse_discogs_url
from utils.units import compute_scale_factor
from web.state import state

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 20 * 1024 * 1024  # embedded badge images travel as data URLs

ALLOWED_HOSTS = {"localhost", "127.0.0.1"}
MAX_DPI = 600

_ERROR_STATUS = (
    (ValidationError, 400),
    (NotFound, 404),
    (DuplicateName, 409),
    (CapacityExceeded, 409),
    (PersistenceError, 500),
)


@app.before_request
def csrf_check():
    """Reject non-GET/HEAD/OPTIONS requests with a foreign Origin or Referer."""
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return
    origin = request.headers.get("Origin") or request.headers.get("Referer")
    if origin:
        host = urlparse(origin).hostname
        if host not in ALLOWED_HOSTS:
            return jsonify(error="Forbidden: cross-origin request"), 403


def _catalog_error(exc: BadgeCatalogError):
    for exc_type, status in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            body = {"error": str(exc)}
            if isinstance(exc, ValidationError) and exc.field:
                body["field"] = exc.field
            return jsonify(body), status
    return jsonify(error=str(exc)), 500


def _dpi_arg():
    """Read ?dpi=, returning (dpi, error_response)."""
    dpi = request.args.get("dpi", DEFAULT_DPI, type=int)
    if dpi is None or dpi <= 0 or dpi > MAX_DPI:
        return None, (jsonify(error=f"dpi must be between 1 and {MAX_DPI}"), 400)
    return dpi, None


def _compositor():
    return make_pop_compositor(state.store.get_by_id)


# ---------------------------------------------------------------------------
# Badge catalog
# ---------------------------------------------------------------------------

@app.route("/api/badges")
def list_badges():
    return jsonify(badges=[b.to_dict() for b in state.store.get_all()])


@app.route("/api/badges", methods=["POST"])
def create_badge():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(error="Expected a JSON object"), 400
    try:
        with state.lock:
            badge = state.store.create(CustomBadgeInput.from_dict(data))
    except BadgeCatalogError as e:
        return _catalog_error(e)
    return jsonify(ok=True, badge=badge.to_dict()), 201


@app.route("/api/badges", methods=["DELETE"])
def clear_badges():
    try:
        with state.lock:
            state.store.clear_all()
    except BadgeCatalogError as e:
        return _catalog_error(e)
    return jsonify(ok=True)


@app.route("/api/badges/validate", methods=["POST"])
def validate_badge():
    data = request.get_json(silent=True) or {}
    return jsonify(
        name_error=state.store.validate_name(data.get("name")),
        text_error=state.store.validate_text(data.get("text")),
    )


@app.route("/api/badges/<badge_id>")
def get_badge(badge_id):
    badge = state.store.get_by_id(badge_id)
    if badge is None:
        return jsonify(error="Badge not found"), 404
    return jsonify(badge=badge.to_dict())


@app.route("/api/badges/<badge_id>", methods=["PUT"])
def update_badge(badge_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(error="Expected a JSON object"), 400
    try:
        with state.lock:
            badge = state.store.update(badge_id, CustomBadgeInput.from_dict(data))
    except BadgeCatalogError as e:
        return _catalog_error(e)
    return jsonify(ok=True, badge=badge.to_dict())


@app.route("/api/badges/<badge_id>", methods=["DELETE"])
def delete_badge(badge_id):
    try:
        with state.lock:
            state.store.delete(badge_id)
    except BadgeCatalogError as e:
        return _catalog_error(e)
    return jsonify(ok=True)


@app.route("/api/badges/<badge_id>/preview")
def preview_badge(badge_id):
    badge = state.store.get_by_id(badge_id)
    if badge is None:
        return jsonify(error="Badge not found"), 404
    dpi, error = _dpi_arg()
    if error:
        return error
    img = render_badge_image(badge, dpi)
    buf = BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return send_file(buf, mimetype="image/png")


# ---------------------------------------------------------------------------
# Discogs
# ---------------------------------------------------------------------------

@app.route("/api/discogs/parse")
def discogs_parse():
    url = request.args.get("url", "")
    return jsonify(parse_discogs_url(url).to_dict())


# ---------------------------------------------------------------------------
# Layout, rendering & export
# ---------------------------------------------------------------------------

@app.route("/api/layout", methods=["POST"])
def layout_pops():
    data = request.get_json(silent=True)
    pops = data.get("pops") if isinstance(data, dict) else data
    if not isinstance(pops, list):
        return jsonify(error="Expected a list of pops"), 400
    pages = generate_a4_layout(pops)
    return jsonify(pages=[p.to_dict() for p in pages], total_pops=len(pops))


@app.route("/api/render-page", methods=["POST"])
def render_page_png():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(error="Expected a page object"), 400
    dpi, error = _dpi_arg()
    if error:
        return error

    page = PageDescriptor.from_dict(data)
    scale = request.args.get("scale", DEFAULT_DISPLAY_SCALE, type=float)
    max_width = request.args.get("max_width", type=int)
    rendered = render_page(page, _compositor(), dpi, scale)
    if rendered is None:
        return jsonify(error="Could not allocate page surface"), 422
    if max_width:
        rendered.scale = compute_scale_factor(rendered.width, rendered.height,
                                              max_width, rendered.height)

    buf = BytesIO()
    rendered.image.save(buf, format="PNG", dpi=(dpi, dpi))
    buf.seek(0)
    response = send_file(buf, mimetype="image/png")
    response.headers["X-Display-Width"] = str(rendered.display_width)
    response.headers["X-Display-Height"] = str(rendered.display_height)
    response.headers["X-Aspect-Ratio"] = rendered.aspect_ratio
    return response


@app.route("/api/export-pdf", methods=["POST"])
def export_pdf():
    data = request.get_json(silent=True)
    pops = data.get("pops") if isinstance(data, dict) else data
    if not isinstance(pops, list) or not pops:
        return jsonify(error="Expected a non-empty list of pops"), 400
    dpi, error = _dpi_arg()
    if error:
        return error

    buf = BytesIO()
    try:
        export_pages_pdf(generate_a4_layout(pops), _compositor(), buf, dpi)
    except RuntimeError as e:
        return jsonify(error=str(e)), 422
    buf.seek(0)
    return send_file(
        buf,
        mimetype="application/pdf",
        as_attachment=True,
        download_name="pops.pdf",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def run(port: Optional[int] = None, debug: Optional[bool] = None) -> None:
    port = port or int(os.environ.get("PORT", 5000))
    if debug is None:
        debug = os.environ.get("FLASK_DEBUG", "0") == "1"
    print(f"Pop Maker Web - http://localhost:{port}")
    app.run(host="127.0.0.1", port=port, debug=debug)


if __name__ == "__main__":
    run()
