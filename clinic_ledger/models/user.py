"""User model shared by clinic staff and patients."""

from enum import Enum

from sqlalchemy import Boolean, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from clinic_ledger.db.base import AuditMixin, Base, SoftDeleteMixin, TimestampMixin


class UserRole(str, Enum):
    """User roles for RBAC."""

    OWNER = "owner"
    DIRECTOR = "director"
    DOCTOR = "doctor"
    CASHIER = "cashier"
    PATIENT = "patient"


STAFF_ROLES = frozenset(
    {UserRole.OWNER, UserRole.DIRECTOR, UserRole.DOCTOR, UserRole.CASHIER}
)


class User(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    """A person who can authenticate: clinic staff or a patient."""

    __tablename__ = "users"
    __table_args__ = (
        Index(
            "uq_users_username_active",
            "username",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    full_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        String(20),
        default=UserRole.PATIENT,
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"
