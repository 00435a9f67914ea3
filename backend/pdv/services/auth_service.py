# Overview: Service-layer operations for auth; registration requests, approval, login and tokens.

"""
Authentication Service

Registration is a request for access: it stores a pending User and nothing
else. A super admin approves it, which links the user to a business (creating
one from the registration when needed) and issues a password credential for a
role. Logins are per (email, role) and return a signed JWT.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default)
- Minimum 8 characters with upper, lower and digit
- Tokens are HS256 JWTs carrying user id, role and business_id; they expire
  after JWT_EXPIRES_HOURS
- Super admin credentials come from configuration and are compared in
  constant time
"""

from __future__ import annotations

import hmac
import re
from datetime import timedelta

import bcrypt
import jwt
from flask import current_app

from ..errors import AuthError, ConflictError, NotFoundError, ValidationError
from ..models import Business, User, UserCredential
from ..models._base import new_id
from ..models.auth import CREDENTIAL_ROLES
from ..storage import StorageRouter
from ..time_utils import utcnow
from ..validation import pick, require_fields
from .permission_service import Principal, SUPER_ADMIN

SUPER_ADMIN_USER_ID = "super-admin"
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt. Stored as str."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def issue_token(principal: Principal) -> str:
    config = current_app.config
    now = utcnow()
    payload = {
        "sub": principal.user_id,
        "email": principal.email,
        "role": principal.role,
        "business_id": principal.business_id,
        "name": principal.name,
        "iat": now,
        "exp": now + timedelta(hours=config["JWT_EXPIRES_HOURS"]),
    }
    return jwt.encode(payload, config["JWT_SECRET"], algorithm=config["JWT_ALGORITHM"])


def decode_token(token: str) -> Principal:
    config = current_app.config
    try:
        payload = jwt.decode(token, config["JWT_SECRET"], algorithms=[config["JWT_ALGORITHM"]])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")

    if not payload.get("sub") or not payload.get("role"):
        raise AuthError("Invalid token")

    return Principal(
        user_id=payload["sub"],
        email=payload.get("email", ""),
        role=payload["role"],
        business_id=payload.get("business_id"),
        name=payload.get("name"),
    )


def register_user(storage: StorageRouter, data: dict) -> User:
    """Record an access request. The user cannot log in until approved."""
    require_fields(
        data,
        name=("name", "fullName", "full_name"),
        email=("email",),
        businessName=("businessName", "business_name"),
    )
    email = str(data["email"]).strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("email is invalid")

    def _op(backend):
        if backend.find_user_by_email(email):
            raise ConflictError("Email already registered")
        user = User(
            id=new_id(),
            name=str(pick(data, "name", "fullName", "full_name")).strip(),
            email=email,
            phone=str(pick(data, "phone", default="")),
            business_name=str(pick(data, "businessName", "business_name")).strip(),
            business_type=str(pick(data, "businessType", "business_type", default="Outros")),
            status="pending",
            created_at=utcnow(),
        )
        return backend.add_user(user)

    return storage.run(_op)


def _super_admin_login(email: str, password: str) -> Principal | None:
    config = current_app.config
    expected_password = config.get("SUPER_ADMIN_PASSWORD")
    if not expected_password:
        return None
    if email.lower() != str(config.get("SUPER_ADMIN_EMAIL", "")).lower():
        return None
    if not hmac.compare_digest(password.encode("utf-8"), expected_password.encode("utf-8")):
        return None
    return Principal(
        user_id=SUPER_ADMIN_USER_ID,
        email=email,
        role=SUPER_ADMIN,
        business_id=None,
        name="Super Administrador",
    )


def login(storage: StorageRouter, email: str, password: str, role: str) -> tuple[str, Principal]:
    """
    Authenticate (email, password, role) and return (token, principal).

    Raises AuthError on any mismatch without revealing which part failed.
    """
    if not all([email, password, role]):
        raise ValidationError("email, password and role required")
    email = email.strip().lower()

    if role == SUPER_ADMIN:
        principal = _super_admin_login(email, password)
        if principal is None:
            raise AuthError("Invalid credentials")
        return issue_token(principal), principal

    if role not in CREDENTIAL_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(CREDENTIAL_ROLES + (SUPER_ADMIN,))}")

    def _op(backend):
        user = backend.find_user_by_email(email)
        if not user or user.status != "approved":
            return None, None
        return user, backend.get_credential(user.id, role)

    user, credential = storage.run(_op)
    if credential is None or not verify_password(password, credential.password_hash):
        raise AuthError("Invalid credentials or user not approved")

    storage.run(lambda backend: backend.touch_credential(credential.id, utcnow()))

    principal = Principal(
        user_id=user.id,
        email=user.email,
        role=credential.role,
        business_id=credential.business_id,
        name=user.name,
    )
    return issue_token(principal), principal


def list_users(storage: StorageRouter, status: str | None = None) -> list[User]:
    return storage.run(lambda backend: backend.list_users(status=status))


def approve_user(storage: StorageRouter, user_id: str, data: dict) -> dict:
    """
    Approve a registration and issue a credential for `role`.

    Without businessId the user's existing business is reused, or a new
    business is created from the registration's business name with the user
    as owner. Approving an already-approved user for a second role adds that
    credential.
    """
    require_fields(data, password=("password",), role=("role",))
    role = data["role"]
    if role not in CREDENTIAL_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(CREDENTIAL_ROLES)}")
    password_hash = hash_password(data["password"])
    requested_business_id = pick(data, "businessId", "business_id")

    def _approve(backend):
        user = backend.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if backend.get_credential(user.id, role) is not None:
            raise ConflictError(f"User already has a {role} credential")

        business_id = requested_business_id or user.business_id
        if business_id:
            if backend.get_business(business_id) is None:
                raise NotFoundError("Business not found")
        else:
            business = backend.add_business(Business(
                id=new_id(),
                name=user.business_name,
                subtitle=user.business_type,
                plan="free",
                use_custom_logo=False,
                owner_id=user.id,
                created_at=utcnow(),
            ))
            business_id = business.id

        credential = backend.add_credential(UserCredential(
            id=new_id(),
            user_id=user.id,
            business_id=business_id,
            username=pick(data, "username", default=user.email),
            password_hash=password_hash,
            role=role,
            created_at=utcnow(),
        ))
        now = utcnow()
        user = backend.update_user(user.id, {
            "status": "approved",
            "business_id": business_id,
            "rejection_reason": None,
            "approved_at": user.approved_at or now,
        })
        return {"user": user.to_dict(), "credential": credential.to_dict()}

    def _op(backend):
        # Business, credential and user status land together or not at all
        with backend.atomic():
            return _approve(backend)

    return storage.run(_op)


def reject_user(storage: StorageRouter, user_id: str, reason: str | None) -> User:
    def _op(backend):
        user = backend.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if user.status == "approved":
            raise ConflictError("Approved users cannot be rejected")
        return backend.update_user(user_id, {"status": "rejected", "rejection_reason": reason or ""})

    return storage.run(_op)
