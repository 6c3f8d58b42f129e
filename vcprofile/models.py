"""Core SQLAlchemy models (2.x style) for users, profile info and documents.

Only the columns the profile engine reads or writes are modelled.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class User(Base):
    """Users table."""
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(50))
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    dob: Mapped[date | None] = mapped_column(Date)
    fields_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fields_verified_at: Mapped[datetime | None] = mapped_column(DateTime)
    fields_verification_data: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    info: Mapped[UserInfo | None] = relationship("UserInfo", back_populates="user", uselist=False)
    documents: Mapped[list[UserDoc]] = relationship("UserDoc", back_populates="user")

    __table_args__ = (
        Index("ix_users_created_at", "created_at"),
    )


class UserInfo(Base):
    """Extended profile attributes, one row per user."""
    __tablename__ = "user_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    father_name: Mapped[str | None] = mapped_column(String(100))
    gender: Mapped[str | None] = mapped_column(String(20))
    caste: Mapped[str | None] = mapped_column(String(50))
    aadhaar: Mapped[str | None] = mapped_column(String(20))
    annual_income: Mapped[float | None] = mapped_column(Float)
    class_: Mapped[int | None] = mapped_column("class", Integer)
    student_type: Mapped[str | None] = mapped_column(String(50))
    previous_year_marks: Mapped[str | None] = mapped_column(String(20))
    dob: Mapped[str | None] = mapped_column(String(20))
    state: Mapped[str | None] = mapped_column(String(100))
    udid: Mapped[str | None] = mapped_column(String(50))
    disability_type: Mapped[str | None] = mapped_column(String(100))
    disability_range: Mapped[str | None] = mapped_column(String(50))
    bank_account_holder_name: Mapped[str | None] = mapped_column(String(255))
    bank_account_number: Mapped[str | None] = mapped_column(String(50))
    bank_ifsc_code: Mapped[str | None] = mapped_column(String(20))
    bank_name: Mapped[str | None] = mapped_column(String(255))
    bank_address: Mapped[str | None] = mapped_column(Text)
    branch_code: Mapped[str | None] = mapped_column(String(50))
    nsp_otr: Mapped[str | None] = mapped_column(String(50))
    tuition_and_admin_fee_paid: Mapped[str | None] = mapped_column(String(50))
    misc_fee_paid: Mapped[str | None] = mapped_column(String(50))
    current_school_name: Mapped[str | None] = mapped_column(String(255))
    fields_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fields_verified_at: Mapped[datetime | None] = mapped_column(DateTime)
    fields_verified_data: Mapped[list | None] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationship
    user: Mapped[User] = relationship("User", back_populates="info")

    __table_args__ = (
        Index("ix_user_info_verification", "fields_verified", "fields_verified_at"),
    )


class UserDoc(Base):
    """Stored user documents (VC payloads as JSON text)."""
    __tablename__ = "user_docs"

    doc_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    doc_type: Mapped[str] = mapped_column(String(50), nullable=False)
    doc_subtype: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    doc_name: Mapped[str] = mapped_column(String(255), nullable=False)
    imported_from: Mapped[str] = mapped_column(String(255), nullable=False)
    doc_data: Mapped[str | None] = mapped_column(Text)
    doc_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    # Relationship
    user: Mapped[User] = relationship("User", back_populates="documents")
