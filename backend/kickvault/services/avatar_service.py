"""
Avatar Service

Avatars are the stakeholders a sale's net profit is split between.
Every owner has one "Main" avatar (created at signup) that cannot be
deleted or demoted. Additional "Member" avatars are capped by plan.
"""

from __future__ import annotations

from ..extensions import db
from ..errors import ValidationError, ConflictError, NotFoundError
from ..models import Avatar, ProfitTemplateItem, SaleProfitDistribution, User
from .plan_service import require_avatar_slot


def list_avatars(owner_id: int) -> list[Avatar]:
    return (
        db.session.query(Avatar)
        .filter_by(owner_id=owner_id)
        # Main first
        .order_by((Avatar.avatar_type == "Main").desc(), Avatar.id.asc())
        .all()
    )


def get_avatar(owner_id: int, avatar_id: int) -> Avatar:
    avatar = db.session.query(Avatar).filter_by(id=avatar_id, owner_id=owner_id).first()
    if avatar is None:
        raise NotFoundError("Avatar not found")
    return avatar


def create_avatar(*, owner: User, patch: dict) -> Avatar:
    if patch.get("avatar_type", "Member") != "Member":
        raise ValidationError("Only Member avatars can be created")
    require_avatar_slot(owner)

    avatar = Avatar(owner_id=owner.id, avatar_type="Member", default_percentage=0)
    for key, value in patch.items():
        setattr(avatar, key, value)
    avatar.avatar_type = "Member"

    db.session.add(avatar)
    db.session.commit()
    return avatar


def update_avatar(*, owner_id: int, avatar_id: int, patch: dict) -> Avatar:
    avatar = get_avatar(owner_id, avatar_id)
    if "avatar_type" in patch and patch["avatar_type"] != avatar.avatar_type:
        raise ValidationError("avatar_type cannot be changed")
    for key, value in patch.items():
        setattr(avatar, key, value)
    db.session.commit()
    return avatar


def delete_avatar(*, owner_id: int, avatar_id: int) -> None:
    avatar = get_avatar(owner_id, avatar_id)
    if avatar.avatar_type == "Main":
        raise ConflictError("The Main avatar cannot be deleted")

    used = db.session.query(SaleProfitDistribution).filter_by(avatar_id=avatar.id).count()
    if used:
        raise ConflictError(
            "Avatar has received profit from recorded sales and cannot be deleted",
            details={"distribution_count": used},
        )
    in_templates = db.session.query(ProfitTemplateItem).filter_by(avatar_id=avatar.id).count()
    if in_templates:
        raise ConflictError(
            "Avatar is used by a profit template and cannot be deleted",
            details={"template_item_count": in_templates},
        )

    db.session.delete(avatar)
    db.session.commit()
