"""JSON routes (debug): POST /api/interleave, GET /api/services/<slug>/sections

Runs the content/image interleaver either on a posted body or on a
service fetched from the content backend, and returns the resulting
sections so the split can be inspected without rendering a page.
"""

from __future__ import annotations

from typing import Any, Dict, List

from flask import Blueprint, jsonify, request
from pydantic import TypeAdapter, ValidationError

from firmsite.schemas import ImageAsset, Section
from firmsite.services.content_client import ContentApiError, ContentNotFoundError, get_client
from firmsite.services.form_service import validation_messages
from firmsite.services.interleave_service import count_elements, interleave
from firmsite.utils.images import is_valid_base64


api_bp = Blueprint("api", __name__, url_prefix="/api")

_images_adapter = TypeAdapter(List[ImageAsset])


def _resp_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _sections_body(content: str, sections: List[Section]) -> Dict[str, Any]:
    return {
        "elements": count_elements(content),
        "sections": [s.model_dump(by_alias=True) for s in sections],
    }


@api_bp.route("/interleave", methods=["POST"])
def interleave_preview():
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    content = payload.get("content")
    if not isinstance(content, str):
        return _resp_error("Missing content in request body.")

    try:
        images = _images_adapter.validate_python(payload.get("images") or [])
    except ValidationError as e:
        return _resp_error("Invalid images: " + "; ".join(validation_messages(e)))
    if not all(is_valid_base64(img.data) for img in images):
        return _resp_error("Image data must be base64 without a data URI prefix.")

    return jsonify(_sections_body(content, interleave(content, images)))


@api_bp.get("/services/<slug>/sections")
def service_sections(slug: str):
    try:
        service = get_client().get_service(slug)
    except ContentNotFoundError:
        return _resp_error("Service not found.", 404)
    except ContentApiError as e:
        return _resp_error(f"Content API error: {e.message}", 502)

    sub_slug = request.args.get("sub")
    if sub_slug:
        sub = service.find_sub_service(sub_slug)
        if sub is None:
            return _resp_error("Sub-service not found.", 404)
        return jsonify(_sections_body(sub.content, interleave(sub.content, sub.images)))
    return jsonify(_sections_body(service.content, interleave(service.content, service.images)))
