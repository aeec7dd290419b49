# Overview: Owner accounts, password hashing and consignor portal credentials.

"""
Owner accounts

An owner is the tenant: products, units, sales, avatars, payment types and
consignors all carry its id. create_user provisions the tenant defaults
(the "Main" avatar and the fee-free "Cash" payment type) in the same
commit as the user row.

Owner passwords and consignor portal passwords are both bcrypt hashes.
Bearer sessions live in session_service.
"""

import re

import bcrypt

from ..extensions import db
from ..models import User, Avatar, PaymentType, Consignor
from kickvault.time_utils import utcnow


USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,64}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8
BCRYPT_ROUNDS = 12

# Checked in order; the first miss is reported
PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"\d"), "Password must contain at least one digit"),
)


class PasswordValidationError(Exception):
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    for pattern, message in PASSWORD_RULES:
        if not pattern.search(password):
            raise PasswordValidationError(message)


def hash_secret(secret: str) -> str:
    return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def hash_password(password: str) -> str:
    """Strength-checked bcrypt hash for an owner password."""
    validate_password_strength(password)
    return hash_secret(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """bcrypt comparison; an empty input or malformed hash is simply False."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def provision_tenant_defaults(user: User) -> None:
    """Stage the Main avatar and Cash payment type; the caller commits."""
    db.session.add_all([
        Avatar(owner_id=user.id, name="Main", avatar_type="Main", default_percentage=100),
        PaymentType(owner_id=user.id, name="Cash", fee_type="none", fee_value=0, applies_to="profit"),
    ])


def create_user(
    username: str,
    email: str,
    password: str,
    plan: str = "free",
) -> User:
    """
    Create an owner with tenant defaults.

    Emails are stored lowercased. Raises ValueError for a malformed or
    taken username/email and PasswordValidationError for a weak password.
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()

    if not USERNAME_PATTERN.match(username):
        raise ValueError("Username must be 3-64 characters: letters, digits, '.', '_' or '-'")
    if not EMAIL_PATTERN.match(email):
        raise ValueError("A valid email address is required")

    taken = db.session.query(User.id).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if taken:
        raise ValueError("Username or email already exists")

    user = User(username=username, email=email, password_hash=hash_password(password), plan=plan)
    db.session.add(user)
    db.session.flush()
    provision_tenant_defaults(user)
    db.session.commit()
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """Active owner matching username or email and password, else None. Stamps last_login_at."""
    identifier = (identifier or "").strip()
    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier.lower()),
        User.is_active.is_(True),
    ).first()

    if user is None or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def authenticate_consignor(consignor_id, password: str) -> Consignor | None:
    """
    Verify consignor portal credentials.

    Returns None for an unknown consignor, an archived one, one without
    portal access, or a wrong password; callers cannot tell these apart.
    """
    try:
        consignor_id = int(consignor_id)
    except (TypeError, ValueError):
        return None

    consignor = db.session.get(Consignor, consignor_id)
    if consignor is None or consignor.is_archived:
        return None
    if not verify_password(password, consignor.portal_password_hash):
        return None
    return consignor
