"""Volunteer account row, stored in the shared ``tblUsers`` table."""
import enum
from datetime import date

from sqlalchemy import Date, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AccountStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class VolunteerAccount(Base):
    __tablename__ = "tblUsers"

    user_id: Mapped[str] = mapped_column("UserID", String(50), primary_key=True)
    email: Mapped[str] = mapped_column("Email", String(250), unique=True, index=True)
    first_name: Mapped[str | None] = mapped_column("FirstName", String(50))
    last_name: Mapped[str | None] = mapped_column("LastName", String(50))
    # SHA-256 hex digest computed by the login form, never the plaintext
    password: Mapped[str] = mapped_column("Password", String(400))
    create_date: Mapped[date] = mapped_column("CreateDate", Date, server_default=func.current_date())
    last_used: Mapped[date | None] = mapped_column("LastUsed", Date, nullable=True)
    status: Mapped[str | None] = mapped_column("Status", String(10), nullable=True)

    @property
    def display_name(self) -> str:
        first = (self.first_name or "").strip()
        last = (self.last_name or "").strip()
        return f"{first} {last}".strip()

    @property
    def is_active(self) -> bool:
        # An empty status is treated as active
        if not self.status:
            return True
        return self.status.lower() == AccountStatus.ACTIVE.value.lower()
