"""
Location Service

Owner-managed list of storage locations. Units store the location name
itself, so renaming a location also renames it on the owner's units, and
a location cannot be deleted while any unit still sits there.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import ValidationError, ConflictError, NotFoundError
from ..models import CustomLocation, Variant

MAX_LOCATION_LENGTH = 128


def list_locations(owner_id: int) -> list[CustomLocation]:
    return (
        db.session.query(CustomLocation)
        .filter_by(owner_id=owner_id)
        .order_by(CustomLocation.name.asc())
        .all()
    )


def get_location(owner_id: int, location_id: int) -> CustomLocation:
    location = db.session.query(CustomLocation).filter_by(id=location_id, owner_id=owner_id).first()
    if location is None:
        raise NotFoundError("Location not found")
    return location


def _clean_name(raw) -> str:
    name = raw.strip() if isinstance(raw, str) else ""
    if not name:
        raise ValidationError("Location name is required")
    if len(name) > MAX_LOCATION_LENGTH:
        raise ValidationError(f"Location name must be at most {MAX_LOCATION_LENGTH} characters")
    return name


def _check_name(owner_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(CustomLocation).filter_by(owner_id=owner_id, name=name)
    if exclude_id is not None:
        query = query.filter(CustomLocation.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A location with this name already exists")


def _units_at(owner_id: int, name: str):
    return db.session.query(Variant).filter_by(owner_id=owner_id, location=name)


def create_location(*, owner_id: int, name) -> CustomLocation:
    name = _clean_name(name)
    _check_name(owner_id, name)
    location = CustomLocation(owner_id=owner_id, name=name)
    db.session.add(location)
    db.session.commit()
    return location


def rename_location(*, owner_id: int, location_id: int, name) -> tuple[CustomLocation, int]:
    """Rename a location and every unit stored there; returns (location, units moved)."""
    location = get_location(owner_id, location_id)
    name = _clean_name(name)
    if name == location.name:
        return location, 0
    _check_name(owner_id, name, exclude_id=location.id)

    moved = _units_at(owner_id, location.name).update({Variant.location: name}, synchronize_session=False)
    location.name = name
    db.session.commit()
    current_app.logger.info("Renamed location %s for owner %s (%d unit(s))", location.id, owner_id, moved)
    return location, moved


def delete_location(*, owner_id: int, location_id: int) -> None:
    location = get_location(owner_id, location_id)
    in_use = _units_at(owner_id, location.name).count()
    if in_use:
        raise ConflictError(
            "Cannot delete location that is currently in use by variants",
            details={"in_use": True, "variant_count": in_use},
        )
    db.session.delete(location)
    db.session.commit()
