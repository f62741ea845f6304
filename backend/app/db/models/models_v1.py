from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    String,
    Integer,
    Float,
    DateTime,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------- AUTH ----------
class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    # sha256 hex du bearer token, jamais le token lui-même
    token_hash: Mapped[str | None] = mapped_column(String(64), unique=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


# ---------- INVENTORY ----------
class Stock(Base):
    __tablename__ = "stocks"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity_received: Mapped[float] = mapped_column(Float, nullable=False)
    quantity_sold: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    # prix en nombres simples : pas d'arrondi au centime
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    selling_price: Mapped[float | None] = mapped_column(Float)

    week: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Stockés en texte à offset fixe, pas en DateTime
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)
    updated_at: Mapped[str] = mapped_column(String(40), nullable=False)

    owner: Mapped[User] = relationship()

    __table_args__ = (
        CheckConstraint("length(item_name) > 0", name="ck_stock_item_name_nonempty"),
        CheckConstraint("quantity_received >= 0", name="ck_stock_qty_received_nonneg"),
        CheckConstraint("quantity_sold >= 0", name="ck_stock_qty_sold_nonneg"),
        CheckConstraint("quantity_sold <= quantity_received", name="ck_stock_sold_le_received"),
        CheckConstraint("week >= 1 AND week <= 53", name="ck_stock_week_1_53"),
        Index("ix_stocks_owner_year_week", "owner_id", "year", "week"),
    )
