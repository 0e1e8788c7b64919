# Overview: Service-layer operations for auth; password hashing, owner registration and credential checks.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

MULTI-TENANT: Self-registration creates an OWNER, i.e. a brand new tenant.
Every other account is created inside a tenant by user_service.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Usernames are globally unique (login happens before the tenant is known)
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import re

import bcrypt

from ..extensions import db
from ..access import Role
from ..errors import AuthError, ConflictError, ValidationError
from ..models import User
from storekeep.time_utils import utcnow


_USERNAME = re.compile(r"^[A-Za-z0-9_.-]{3,64}$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time. A malformed stored hash
    counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_username(username) -> str:
    if not isinstance(username, str) or not _USERNAME.match(username.strip()):
        raise ValidationError(
            "username must be 3-64 characters of letters, digits, '.', '_' or '-'"
        )
    return username.strip().lower()


def ensure_username_available(username: str) -> None:
    """Usernames stay reserved after soft deletion so audit trails remain unambiguous."""
    if db.session.query(User.id).filter(User.username == username).first():
        raise ConflictError(f"Username '{username}' is already taken")


def register_owner(*, username: str, name: str, password: str) -> User:
    """
    Create a new OWNER account, i.e. a new tenant.

    Commits immediately: registration is its own unit of work.

    Raises:
        ValidationError: bad username/name or weak password
        ConflictError: username already taken
    """
    username = normalize_username(username)
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")

    ensure_username_available(username)

    user = User(
        username=username,
        name=name,
        password_hash=hash_password(password),
        role=Role.OWNER.value,
        owner_id=None,
        is_active=True,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User:
    """
    Authenticate user with username and password.

    Returns the User and stamps last_login_at on success.

    Raises AuthError with one generic message for unknown users, wrong
    passwords and disabled accounts so the response does not reveal which
    usernames exist.
    """
    if not isinstance(username, str) or not isinstance(password, str):
        raise AuthError("Invalid username or password")

    user = User.live().filter(
        User.username == username.strip().lower(),
        User.is_active.is_(True),
    ).first()

    if user is None or not verify_password(password, user.password_hash):
        raise AuthError("Invalid username or password")

    user.last_login_at = utcnow()
    db.session.commit()
    return user
