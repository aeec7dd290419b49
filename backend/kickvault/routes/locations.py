# Overview: Flask API routes for owner-defined storage locations.

from flask import Blueprint, request, jsonify, g

from ..services import location_service
from ..errors import ServiceError, error_response
from ..decorators import require_auth

locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")


def _fail(e: ServiceError):
    body, status = error_response(e, envelope=True)
    return jsonify(body), status


def _name_from_body():
    payload = request.get_json(silent=True) or {}
    return payload.get("name", payload.get("locationName"))


@locations_bp.get("")
@require_auth
def list_locations_route():
    locations = location_service.list_locations(g.owner_id)
    return jsonify({"success": True, "data": [loc.to_dict() for loc in locations]}), 200


@locations_bp.post("")
@require_auth
def create_location_route():
    try:
        location = location_service.create_location(owner_id=g.owner_id, name=_name_from_body())
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": location.to_dict()}), 201


@locations_bp.patch("/<int:location_id>")
@require_auth
def rename_location_route(location_id: int):
    """Rename; units stored under the old name follow."""
    try:
        location, moved = location_service.rename_location(
            owner_id=g.owner_id, location_id=location_id, name=_name_from_body()
        )
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": location.to_dict(), "variantsMoved": moved}), 200


@locations_bp.delete("/<int:location_id>")
@require_auth
def delete_location_route(location_id: int):
    try:
        location_service.delete_location(owner_id=g.owner_id, location_id=location_id)
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True}), 200
