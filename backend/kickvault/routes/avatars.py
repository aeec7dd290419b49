# Overview: Flask API routes for profit-sharing avatars.

from flask import Blueprint, request, jsonify, g

from ..services import avatar_service
from ..models import Avatar
from ..models.sales import AVATAR_TYPES
from ..errors import ServiceError, ValidationError, error_response
from ..validation import ModelValidationPolicy, validate_payload, to_percentage
from ..decorators import require_auth

AVATAR_POLICY = ModelValidationPolicy(
    writable_fields={"name", "avatar_type", "default_percentage"},
    required_on_create={"name"},
    choices={"avatar_type": set(AVATAR_TYPES)},
)

avatars_bp = Blueprint("avatars", __name__, url_prefix="/api/avatars")


def _fail(e: ServiceError):
    body, status = error_response(e, envelope=True)
    return jsonify(body), status


def _validated(payload, *, partial: bool) -> dict:
    patch = validate_payload(model=Avatar, payload=payload, policy=AVATAR_POLICY, partial=partial)
    if patch.get("default_percentage") is not None:
        patch["default_percentage"] = to_percentage(patch["default_percentage"], "default_percentage")
    elif "default_percentage" in patch:
        raise ValidationError("Validation failed", errors=["default_percentage cannot be null"])
    return patch


@avatars_bp.get("")
@require_auth
def list_avatars_route():
    avatars = avatar_service.list_avatars(g.owner_id)
    return jsonify({"success": True, "data": [a.to_dict() for a in avatars]}), 200


@avatars_bp.post("")
@require_auth
def create_avatar_route():
    """Create a Member avatar. The number of avatars is capped by plan (403)."""
    try:
        patch = _validated(request.get_json(silent=True) or {}, partial=False)
        avatar = avatar_service.create_avatar(owner=g.current_user, patch=patch)
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": avatar.to_dict()}), 201


@avatars_bp.put("/<int:avatar_id>")
@require_auth
def update_avatar_route(avatar_id: int):
    try:
        patch = _validated(request.get_json(silent=True) or {}, partial=True)
        avatar = avatar_service.update_avatar(owner_id=g.owner_id, avatar_id=avatar_id, patch=patch)
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": avatar.to_dict()}), 200


@avatars_bp.delete("/<int:avatar_id>")
@require_auth
def delete_avatar_route(avatar_id: int):
    try:
        avatar_service.delete_avatar(owner_id=g.owner_id, avatar_id=avatar_id)
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True}), 200
