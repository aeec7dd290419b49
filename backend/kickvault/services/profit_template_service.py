"""
Profit Template Service

A template is a named, reusable profit split. Its distributions pass the
same checks as a sale's (see validate_profit_distribution) and must only
reference the owner's own avatars. Updating distributions replaces the
template's items wholesale.
"""

from __future__ import annotations

from ..extensions import db
from ..errors import ValidationError, ConflictError, NotFoundError
from ..models import ProfitTemplate, ProfitTemplateItem
from .sales_service import ProfitShare, require_owned_avatars, validate_profit_distribution


def list_templates(owner_id: int) -> list[ProfitTemplate]:
    return (
        db.session.query(ProfitTemplate)
        .filter_by(owner_id=owner_id)
        .order_by(ProfitTemplate.name.asc())
        .all()
    )


def get_template(owner_id: int, template_id: int) -> ProfitTemplate:
    template = db.session.query(ProfitTemplate).filter_by(id=template_id, owner_id=owner_id).first()
    if template is None:
        raise NotFoundError("Profit template not found")
    return template


def _clean_name(raw) -> str:
    name = (raw or "").strip() if isinstance(raw, str) else ""
    if not name:
        raise ValidationError("Validation failed", errors=["name is required"])
    if len(name) > 100:
        raise ValidationError("Validation failed", errors=["name must be at most 100 characters"])
    return name


def _check_name(owner_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(ProfitTemplate).filter(
        ProfitTemplate.owner_id == owner_id,
        db.func.lower(ProfitTemplate.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(ProfitTemplate.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A profit template with this name already exists")


def _shares(owner_id: int, raw) -> list[ProfitShare]:
    # Accept the checkout spelling (avatarId) and the snake_case one
    entries = raw
    if isinstance(raw, list):
        entries = [
            {**entry, "avatarId": entry.get("avatarId", entry.get("avatar_id"))}
            if isinstance(entry, dict) else entry
            for entry in raw
        ]
    shares = validate_profit_distribution(entries)
    require_owned_avatars(owner_id, shares)
    return shares


def _replace_items(template: ProfitTemplate, shares: list[ProfitShare]) -> None:
    template.items = [
        ProfitTemplateItem(avatar_id=share.avatar_id, percentage=share.percentage)
        for share in shares
    ]


def create_template(*, owner_id: int, payload: dict) -> ProfitTemplate:
    name = _clean_name(payload.get("name"))
    shares = _shares(owner_id, payload.get("distributions"))
    _check_name(owner_id, name)

    template = ProfitTemplate(owner_id=owner_id, name=name, description=payload.get("description"))
    _replace_items(template, shares)
    db.session.add(template)
    db.session.commit()
    return template


def update_template(*, owner_id: int, template_id: int, payload: dict) -> ProfitTemplate:
    template = get_template(owner_id, template_id)

    if "name" in payload:
        name = _clean_name(payload.get("name"))
        _check_name(owner_id, name, exclude_id=template.id)
        template.name = name
    if "description" in payload:
        template.description = payload.get("description")
    if "distributions" in payload:
        _replace_items(template, _shares(owner_id, payload.get("distributions")))

    db.session.commit()
    return template


def delete_template(*, owner_id: int, template_id: int) -> None:
    template = get_template(owner_id, template_id)
    db.session.delete(template)
    db.session.commit()
