from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ._base import new_id

USER_STATUSES = ("pending", "approved", "rejected", "restricted")
CREDENTIAL_ROLES = ("admin", "operator")


class User(db.Model):
    """
    A person who requested access through self-registration.

    Registration only records the request (status "pending"). A super admin
    approves it, which attaches the user to a business and issues a
    UserCredential for a role.
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(32), nullable=False, default="")
    business_name = db.Column(db.String(255), nullable=False)
    business_type = db.Column(db.String(100), nullable=False, default="Outros")

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    approved_at = db.Column(db.DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "business_name": self.business_name,
            "business_type": self.business_type,
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "created_at": to_utc_z(self.created_at),
            "approved_at": to_utc_z(self.approved_at),
        }


class UserCredential(db.Model):
    """Password + role pair for an approved user. A user holds at most one credential per role."""
    __tablename__ = "user_credentials"
    __table_args__ = (
        db.UniqueConstraint("user_id", "role", name="uq_user_credentials_user_role"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False, index=True)

    username = db.Column(db.String(100), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_login = db.Column(db.DateTime, nullable=True)

    def to_dict(self) -> dict:
        # Never expose password_hash
        return {
            "id": self.id,
            "user_id": self.user_id,
            "business_id": self.business_id,
            "username": self.username,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "last_login": to_utc_z(self.last_login),
        }
