# Overview: Service-layer operations for auth; accounts, passwords and the authentication gate.

"""
Authentication Service

WHY: Every request that changes state must be attributable to a user.
Passwords are hashed with bcrypt; credentials are signed tokens issued
by token_service.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, at least one letter and one digit
- Emails are unique and compared case-insensitively
- Self-signup always creates role "user"; the vendor role is granted by
  vendor approval and admins are created from the CLI
"""

from __future__ import annotations

import re

import bcrypt
from flask import current_app

from ..errors import Forbidden, NotFound, Unauthenticated, ValidationError
from ..models import User, Vendor, ROLE_USER, ROLE_VENDOR, USER_ROLES
from ..storage import DuplicateKeyError, get_repository
from ..storage.concurrency import transactional
from . import token_service


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_user_by_email(email: str) -> User | None:
    return User.find_one(get_repository(), {"email": normalize_email(email)})


@transactional
def _insert_user(user: User) -> User:
    # The unique email key rejects a concurrent signup the lookup missed
    if find_user_by_email(user.email):
        raise ValidationError("User already exists with this email")
    try:
        return user.insert(get_repository())
    except DuplicateKeyError:
        raise ValidationError("User already exists with this email") from None


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    phone: str = "",
    address: dict | None = None,
    role: str = ROLE_USER,
) -> User:
    """
    Create a new account with a bcrypt password hash.

    Raises:
        ValidationError: missing fields, duplicate email or unknown role
        PasswordValidationError: weak password
    """
    if not name or not str(name).strip() or not email or not password:
        raise ValidationError("Please provide name, email and password")
    if role not in USER_ROLES:
        raise ValidationError(f"Unknown role {role}")

    email = normalize_email(email)
    if "@" not in email:
        raise ValidationError("Please provide a valid email address")
    user = User(
        name=str(name).strip(),
        email=email,
        password_hash=hash_password(password),
        phone=str(phone or "").strip(),
        address=address if isinstance(address, dict) else {},
        role=role,
    )
    user = _insert_user(user)
    current_app.logger.info("User %s registered (role=%s)", user.id, user.role)
    return user


def authenticate(email: str, password: str, role: str | None = None) -> tuple[User, Vendor | None]:
    """
    Check credentials for login.

    Returns (user, vendor profile or None).

    Raises:
        ValidationError: email or password missing
        Unauthenticated: unknown email or wrong password
        Forbidden: role mismatch or inactive account (checked only after
            the password matches)
    """
    if not email or not password:
        raise ValidationError("Please provide email and password")

    user = find_user_by_email(email)
    if user is None:
        raise Unauthenticated("Invalid credentials")

    if not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid credentials")

    if role and user.role != role:
        raise Forbidden(f"This account is not registered as {role}")

    if not user.is_active:
        raise Forbidden("Your account is not active. Please contact support.")

    vendor = None
    if user.role == ROLE_VENDOR:
        vendor = Vendor.find_one(get_repository(), {"user_id": user.id})
    return user, vendor


def resolve_request_user(authorization_header: str | None) -> User:
    """
    Authentication gate: bearer header -> active User.

    Raises:
        Unauthenticated: missing, malformed or unverifiable credential
        NotFound: the user named by the credential no longer exists
        Forbidden: account status is not active
    """
    token = token_service.token_from_header(authorization_header)
    user_id = token_service.verify_token(token)

    user = User.load(get_repository(), user_id)
    if user is None:
        raise NotFound("User not found")
    if not user.is_active:
        raise Forbidden("Account is not active")
    return user


def change_password(user_id: str, current_password: str, new_password: str) -> User:
    if not current_password or not new_password:
        raise ValidationError("Please provide current and new password")

    repository = get_repository()
    user = User.load(repository, user_id)
    if user is None:
        raise NotFound("User not found")

    if not verify_password(current_password, user.password_hash):
        raise Unauthenticated("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    return user.save(repository, "password_hash")
