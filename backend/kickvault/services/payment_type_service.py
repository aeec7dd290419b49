"""
Payment Type Service

Payment types carry the processing fee applied at checkout. Each owner
gets a default "Cash" type at signup; it cannot be edited or deleted.
Past sales keep a snapshot of the payment type, so deleting one never
changes history.
"""

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..errors import ValidationError, ConflictError, NotFoundError
from ..models import PaymentType

DEFAULT_PAYMENT_TYPE = "Cash"


def list_payment_types(owner_id: int) -> list[PaymentType]:
    return (
        db.session.query(PaymentType)
        .filter_by(owner_id=owner_id)
        .order_by((PaymentType.name == DEFAULT_PAYMENT_TYPE).desc(), PaymentType.name.asc())
        .all()
    )


def get_payment_type(owner_id: int, payment_type_id: int) -> PaymentType:
    payment_type = db.session.query(PaymentType).filter_by(id=payment_type_id, owner_id=owner_id).first()
    if payment_type is None:
        raise NotFoundError("Payment type not found")
    return payment_type


def _check_fee(payment_type: PaymentType) -> None:
    fee_value = Decimal(str(payment_type.fee_value or 0))
    errors = []
    if fee_value < 0:
        errors.append("fee_value must be >= 0")
    if payment_type.fee_type == "percent" and fee_value > 100:
        errors.append("fee_value must be between 0 and 100 for percent fees")
    if payment_type.fee_type == "none" and fee_value != 0:
        payment_type.fee_value = 0
    if errors:
        raise ValidationError("Validation failed", errors=errors)


def _check_name(owner_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(PaymentType).filter(
        PaymentType.owner_id == owner_id,
        db.func.lower(PaymentType.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(PaymentType.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A payment type with this name already exists")


def create_payment_type(*, owner_id: int, patch: dict) -> PaymentType:
    _check_name(owner_id, patch["name"])
    payment_type = PaymentType(owner_id=owner_id, fee_type="none", fee_value=0, applies_to="profit")
    for key, value in patch.items():
        setattr(payment_type, key, value)
    _check_fee(payment_type)

    db.session.add(payment_type)
    db.session.commit()
    return payment_type


def update_payment_type(*, owner_id: int, payment_type_id: int, patch: dict) -> PaymentType:
    payment_type = get_payment_type(owner_id, payment_type_id)
    if payment_type.name == DEFAULT_PAYMENT_TYPE:
        raise ConflictError("The default Cash payment type cannot be edited")

    if "name" in patch:
        _check_name(owner_id, patch["name"], exclude_id=payment_type.id)
    with db.session.no_autoflush:
        for key, value in patch.items():
            setattr(payment_type, key, value)
        try:
            _check_fee(payment_type)
        except ValidationError:
            db.session.rollback()
            raise

    db.session.commit()
    return payment_type


def delete_payment_type(*, owner_id: int, payment_type_id: int) -> None:
    payment_type = get_payment_type(owner_id, payment_type_id)
    if payment_type.name == DEFAULT_PAYMENT_TYPE:
        raise ConflictError("The default Cash payment type cannot be deleted")
    db.session.delete(payment_type)
    db.session.commit()
