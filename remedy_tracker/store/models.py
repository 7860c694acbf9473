"""
ORM models for remedy_tracker.db.

Covers the three document collections (sales / medicines / users), the
append-only sale history, and the credential table owned by the identity provider.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import CheckConstraint, Date, Float, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from remedy_tracker.store.db import StoreBase


class User(StoreBase):
    """App user profile (the identity's cached profile document)."""

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('admin', 'team_member')", name="ck_users_role"),)

    uid: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)


class Credential(StoreBase):
    """Sign-in credential.

    - Independent of `users`: removing a profile keeps the credential.
    - Only the bcrypt hash is stored.
    """

    __tablename__ = "credentials"

    uid: Mapped[str] = mapped_column(Text, primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)


class Medicine(StoreBase):
    """Medicine catalog entry."""

    __tablename__ = "medicines"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_medicines_price"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)


class Sale(StoreBase):
    """Sale record (one patient, one medicine, current dosage term)."""

    __tablename__ = "sales"
    __table_args__ = (
        CheckConstraint("duration >= 1", name="ck_sales_duration"),
        Index("ix_sales_team_member_id", "team_member_id"),
        Index("ix_sales_dosage_end_date", "dosage_end_date"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)

    # --- patient ---
    patient_name: Mapped[str] = mapped_column(Text, nullable=False)
    phone_number: Mapped[str] = mapped_column(Text, nullable=False)
    whatsapp_number: Mapped[str] = mapped_column(Text, nullable=False)

    # --- medicine (name is copied at sale time) ---
    medicine_id: Mapped[str] = mapped_column(Text, nullable=False)
    medicine_name: Mapped[str] = mapped_column(Text, nullable=False)

    # --- amounts ---
    price: Mapped[float] = mapped_column(Float, nullable=False)
    optional_charges: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)

    # --- current dosage term (overwritten by reorder) ---
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    dosage_end_date: Mapped[Optional[date]] = mapped_column(Date)

    # --- owner ---
    team_member_id: Mapped[str] = mapped_column(Text, nullable=False)
    team_member_name: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[int] = mapped_column(Integer, nullable=False)

    # --- reminder stamp: ISO calendar date (YYYY-MM-DD) of the last claimed send ---
    last_reminder_sent: Mapped[Optional[str]] = mapped_column(Text)

    history: Mapped[list["SaleHistoryEntry"]] = relationship(
        back_populates="sale",
        order_by="SaleHistoryEntry.seq",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class SaleHistoryEntry(StoreBase):
    """Append-only history of dosage terms (rows are never updated)."""

    __tablename__ = "sale_history"
    __table_args__ = (UniqueConstraint("sale_id", "seq", name="uq_sale_history_sale_seq"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sale_id: Mapped[str] = mapped_column(Text, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    dosage_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    updated_by: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False)

    sale: Mapped[Sale] = relationship(back_populates="history")
