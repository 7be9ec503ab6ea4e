# Overview: Service-layer operations for auth; password hashing, user creation and login.

"""
Authentication Service

Users belong to exactly one company (company_id). Email uniqueness is
company-scoped, so login takes an optional companyId to disambiguate when
the same address exists in more than one tenant.

- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters; upper, lower, digit and special character required
- Session tokens are managed separately (see session_service.py)
"""

import bcrypt
import re
from ..errors import ConflictError, UnauthorizedError, ValidationError
from ..extensions import db
from ..models import Company, User, USER_ROLES
from stockroom.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Raises PasswordValidationError unless the password has at least 8
    characters with an uppercase letter, a lowercase letter, a digit and a
    special character.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return str(email or "").strip().lower()


def create_user(
    *,
    company_id: str,
    email: str,
    password: str,
    full_name: str | None = None,
    phone: str | None = None,
    role: str = "user",
) -> User:
    """
    Create a user inside an existing company. Adds to the session; the caller commits.

    Raises ValidationError for a bad role or weak password and ConflictError
    when the email is already taken inside the company.
    """
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")
    if role not in USER_ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(USER_ROLES)}")

    existing = db.session.query(User).filter_by(company_id=company_id, email=email).first()
    if existing:
        raise ConflictError("A user with this email already exists")

    user = User(
        company_id=company_id,
        email=email,
        full_name=(full_name or "").strip() or None,
        phone=phone,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    return user


def authenticate(*, email: str, password: str, company_id: str | None = None) -> User:
    """
    Resolve the user for a login attempt.

    Raises UnauthorizedError for unknown email, wrong password, inactive
    user or inactive company. The same message is used for all of them.
    """
    email = normalize_email(email)
    if not email or not password or not isinstance(password, str):
        raise ValidationError("Email and password are required")

    query = db.session.query(User).filter(User.email == email)
    if company_id:
        query = query.filter(User.company_id == str(company_id).strip().upper())
    candidates = query.all()

    if len(candidates) > 1:
        raise ValidationError("companyId is required for this account")

    user = candidates[0] if candidates else None
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")

    if not user.is_active:
        raise UnauthorizedError("Invalid email or password")

    company = db.session.query(Company).filter_by(company_id=user.company_id).first()
    if not company or not company.is_active:
        raise UnauthorizedError("Invalid email or password")

    user.last_login_at = utcnow()
    return user
