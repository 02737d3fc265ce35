"""SQLAlchemy ORM model for the ``users`` table."""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Integer, LargeBinary, String, false
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Account(Base):
    __tablename__ = "users"
    __table_args__ = (
        # A row holds a file reference or an inline blob, never both.
        CheckConstraint(
            "profile_image_url IS NULL OR profile_image IS NULL",
            name="ck_users_single_profile_asset",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column("fullname", String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column("phonenumber", String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)
    company_name: Mapped[str | None] = mapped_column("companyname", String(255))
    is_agency: Mapped[bool] = mapped_column(
        "isagency", Boolean, nullable=False, default=False, server_default=false()
    )

    # filesystem backend
    profile_image_url: Mapped[str | None] = mapped_column(String(1024))
    # blob backend
    profile_image: Mapped[bytes | None] = mapped_column(LargeBinary, deferred=True)
    profile_image_mimetype: Mapped[str | None] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"Account(id={self.id!r})"
