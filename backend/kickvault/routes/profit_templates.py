# Overview: Flask API routes for saved profit-split templates.

from flask import Blueprint, request, jsonify, g

from ..services import profit_template_service
from ..errors import ServiceError, ValidationError, error_response
from ..decorators import require_auth

profit_templates_bp = Blueprint("profit_templates", __name__, url_prefix="/api/profit-templates")


def _fail(e: ServiceError):
    body, status = error_response(e, envelope=True)
    return jsonify(body), status


def _payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


@profit_templates_bp.get("")
@require_auth
def list_profit_templates_route():
    templates = profit_template_service.list_templates(g.owner_id)
    return jsonify({"success": True, "data": [t.to_dict() for t in templates]}), 200


@profit_templates_bp.post("")
@require_auth
def create_profit_template_route():
    """Body: {name, description?, distributions: [{avatarId, percentage}]} summing to 100."""
    try:
        template = profit_template_service.create_template(owner_id=g.owner_id, payload=_payload())
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": template.to_dict()}), 201


@profit_templates_bp.get("/<int:template_id>")
@require_auth
def get_profit_template_route(template_id: int):
    try:
        template = profit_template_service.get_template(g.owner_id, template_id)
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": template.to_dict()}), 200


@profit_templates_bp.put("/<int:template_id>")
@require_auth
def update_profit_template_route(template_id: int):
    try:
        template = profit_template_service.update_template(
            owner_id=g.owner_id, template_id=template_id, payload=_payload()
        )
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": template.to_dict()}), 200


@profit_templates_bp.delete("/<int:template_id>")
@require_auth
def delete_profit_template_route(template_id: int):
    try:
        profit_template_service.delete_template(owner_id=g.owner_id, template_id=template_id)
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True}), 200
