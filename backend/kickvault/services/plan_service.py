# Overview: Subscription plan limits and the variant quota guard.

"""
Plan Service - subscription tiers and the limits they gate.

Plans are code constants, not rows: the subscription processor (outside
this service) only ever changes User.plan. Unknown or missing plan codes
fall back to "free".

QUOTA RULE: only variants with status "Available" that are not archived
count toward the variant ceiling. Sold, reserved, pulled-out and
pre-order units never count.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..errors import QuotaExceededError, PlanLimitError
from ..models import User, Variant, Avatar


@dataclass(frozen=True)
class Plan:
    code: str
    name: str
    variant_limit: int
    avatar_limit: int | None  # None = unlimited


PLANS: dict[str, Plan] = {
    "free": Plan("free", "Free", variant_limit=100, avatar_limit=1),
    "individual": Plan("individual", "Individual", variant_limit=500, avatar_limit=1),
    "team": Plan("team", "Team", variant_limit=1500, avatar_limit=5),
    "store": Plan("store", "Store", variant_limit=5000, avatar_limit=None),
}
DEFAULT_PLAN = "free"


def get_plan(code: str | None) -> Plan:
    return PLANS.get((code or "").strip().lower(), PLANS[DEFAULT_PLAN])


def get_variant_limit(code: str | None) -> int:
    return get_plan(code).variant_limit


@dataclass(frozen=True)
class QuotaCheck:
    current: int
    limit: int
    proposed: int
    plan: str

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current)

    @property
    def allowed(self) -> bool:
        return self.current + self.proposed <= self.limit

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "limit": self.limit,
            "remaining": self.remaining,
            "attempted": self.proposed,
            "plan": self.plan,
        }


def evaluate_quota(current: int, limit: int, proposed: int, plan: str) -> QuotaCheck:
    """
    Pure quota decision. Raises QuotaExceededError when current + proposed
    would exceed limit; otherwise returns the check for reporting.
    """
    check = QuotaCheck(current=current, limit=limit, proposed=proposed, plan=plan)
    if check.allowed:
        return check

    if check.remaining == 0:
        message = (
            f"Variant limit reached. Your {plan} plan allows up to {limit} available variants "
            f"and you currently have {current}. Upgrade your plan to add more."
        )
    else:
        message = (
            f"Variant limit exceeded. Your {plan} plan allows up to {limit} available variants. "
            f"You currently have {current} and are trying to add {proposed}; only "
            f"{check.remaining} slots remain. Reduce the quantity to {check.remaining} or upgrade your plan."
        )
    raise QuotaExceededError(message, details=check.to_dict())


def count_available_variants(owner_id: int) -> int:
    return db.session.query(Variant).filter(
        Variant.owner_id == owner_id,
        Variant.status == "Available",
        Variant.is_archived == False,  # noqa: E712
    ).count()


def check_variant_quota(owner: User, proposed: int) -> QuotaCheck:
    """Quota guard for owner; read-only, raises QuotaExceededError on rejection."""
    plan = get_plan(owner.plan)
    current = count_available_variants(owner.id)
    return evaluate_quota(current, plan.variant_limit, proposed, plan.name)


def get_variant_quota(owner: User) -> dict:
    plan = get_plan(owner.plan)
    current = count_available_variants(owner.id)
    check = QuotaCheck(current=current, limit=plan.variant_limit, proposed=0, plan=plan.name)
    return {
        "current": current,
        "limit": plan.variant_limit,
        "remaining": check.remaining,
        "plan": plan.name,
        "isAtLimit": current >= plan.variant_limit,
    }


def require_avatar_slot(owner: User) -> None:
    """Raise PlanLimitError when the owner's plan cannot hold another avatar."""
    plan = get_plan(owner.plan)
    if plan.avatar_limit is None:
        return
    count = db.session.query(Avatar).filter_by(owner_id=owner.id).count()
    if count >= plan.avatar_limit:
        raise PlanLimitError(
            f"Your {plan.name} plan allows up to {plan.avatar_limit} avatar(s). Upgrade for more.",
            details={"current": count, "limit": plan.avatar_limit, "plan": plan.name},
        )


def get_plan_summary(owner: User) -> dict:
    plan = get_plan(owner.plan)
    return {
        "plan": plan.code,
        "plan_name": plan.name,
        "variant_limit": plan.variant_limit,
        "avatar_limit": plan.avatar_limit,
    }


def set_plan(owner: User, code: str) -> User:
    normalized = (code or "").strip().lower()
    if normalized not in PLANS:
        raise ValueError(f"Unknown plan: {code}")
    owner.plan = normalized
    db.session.commit()
    return owner
