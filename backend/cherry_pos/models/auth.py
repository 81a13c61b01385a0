from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class AdminUser(db.Model):
    """
    Administrator accounts, authenticated by email and password.

    The profile (full name, avatar) lives on the same row; the role lives in
    user_roles so that account management can create it separately and report
    a partial failure without losing the account.
    """
    __tablename__ = "admin_users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_admin_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(255), nullable=True)
    avatar_url = db.Column(db.String(512), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    role_assignment = db.relationship(
        "UserRole",
        uselist=False,
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def role(self) -> str | None:
        return self.role_assignment.role if self.role_assignment else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "profile": {
                "full_name": self.full_name,
                "avatar_url": self.avatar_url,
            },
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }


class UserRole(db.Model):
    """Role of an administrator account. At most one row per account."""
    __tablename__ = "user_roles"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_user_roles_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = db.Column(db.String(32), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("AdminUser", back_populates="role_assignment")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
        }


class StaffUser(db.Model):
    """
    Floor staff accounts, verified locally by username and password.

    Independent of AdminUser: a staff member never has an email login and
    an administrator never has a username login. Usernames are stored
    lower-cased so that uniqueness is case-insensitive.
    """
    __tablename__ = "staff_users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_staff_users_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)
    full_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(32), nullable=False)

    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }


class SessionToken(db.Model):
    """
    Issued session tokens, stored as SHA-256 hashes only.

    kind="admin" rows belong to an AdminUser and carry a refresh token;
    kind="staff" rows belong to a StaffUser and have a fixed lifetime.
    The two kinds are never interchangeable.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user", "user_id"),
        db.Index("ix_session_tokens_staff_user", "staff_user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(16), nullable=False)

    user_id = db.Column(db.Integer, db.ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=True)
    staff_user_id = db.Column(db.Integer, db.ForeignKey("staff_users.id", ondelete="CASCADE"), nullable=True)

    token_hash = db.Column(db.String(64), nullable=False, unique=True)
    refresh_token_hash = db.Column(db.String(64), nullable=True, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    refresh_expires_at = db.Column(db.DateTime(timezone=True), nullable=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(128), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    user = db.relationship("AdminUser")
    staff_user = db.relationship("StaffUser")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "user_id": self.user_id,
            "staff_user_id": self.staff_user_id,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "refresh_expires_at": to_utc_z(self.refresh_expires_at),
            "is_revoked": self.is_revoked,
        }
