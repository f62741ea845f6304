from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.core.config import STOCK_UTC_OFFSET_MINUTES
from backend.app.db.models.models_v1 import Stock
from backend.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

STORAGE_TZ = timezone(timedelta(minutes=STOCK_UTC_OFFSET_MINUTES))

# "2024-03-15T10:00:00.1234567" -> 6 chiffres max pour fromisoformat
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


# ---------- Timestamps ----------
def parse_timestamp(value: str) -> datetime:
    """
    Parse un timestamp ISO-8601 fourni par le client.
    'Z' accepté ; un timestamp naïf est considéré comme UTC.
    """
    text = _FRACTION_RE.sub(r"\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid timestamp: {value!r}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(dt: datetime) -> str:
    """Format de stockage : ISO, millisecondes, offset fixe (ex. +05:30)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(STORAGE_TZ).isoformat(timespec="milliseconds")


def now_timestamp() -> str:
    return format_timestamp(datetime.now(timezone.utc))


# ---------- Helpers ----------
def _check_not_overselling(quantity_sold: float, quantity_received: float) -> None:
    if quantity_sold > quantity_received:
        raise ValidationError("Cannot sell more than received quantity")


def _get_owned_stock(db: Session, *, owner_id: str, stock_id: str) -> Stock:
    stock = db.get(Stock, stock_id)
    # une entrée d'un autre utilisateur est traitée comme inexistante
    if stock is None or stock.owner_id != owner_id:
        raise NotFoundError("Stock not found")
    return stock


def week_clause(
    week: int | None,
    start_week: int | None,
    end_week: int | None,
):
    """
    Contrainte sur la semaine pour le filtre.

    Une plage [start_week, end_week] n'est valide que si les deux bornes sont
    fournies ; elle remplace alors la semaine exacte.
    """
    if start_week is not None and end_week is not None:
        return Stock.week.between(start_week, end_week)
    if week is not None:
        return Stock.week == week
    return None


# ---------- Operations ----------
def add_stock(
    db: Session,
    *,
    owner_id: str,
    item_name: str,
    quantity_received: float,
    unit_price: float,
    selling_price: float | None,
    week: int,
    year: int,
    created_at: str,
    updated_at: str,
    quantity_sold: float = 0,
) -> Stock:
    if not item_name or not item_name.strip():
        raise ValidationError("itemName is required")
    _check_not_overselling(quantity_sold, quantity_received)

    stock = Stock(
        owner_id=owner_id,
        item_name=item_name,
        quantity_received=quantity_received,
        quantity_sold=quantity_sold,
        unit_price=unit_price,
        selling_price=selling_price,
        week=week,
        year=year,
        created_at=format_timestamp(parse_timestamp(created_at)),
        updated_at=format_timestamp(parse_timestamp(updated_at)),
    )
    db.add(stock)
    db.flush()
    logger.info("Stock %s added for user %s (week %s/%s)", stock.id, owner_id, week, year)
    return stock


def list_stocks(db: Session, *, owner_id: str) -> list[Stock]:
    # pas de tri ici : l'ordre d'affichage est l'affaire du dashboard
    return list(db.execute(select(Stock).where(Stock.owner_id == owner_id)).scalars().all())


_UNSET = object()


def update_sales(
    db: Session,
    *,
    owner_id: str,
    stock_id: str,
    quantity_sold: float,
    unit_price=_UNSET,
    selling_price=_UNSET,
) -> Stock:
    """
    Met à jour les ventes (et éventuellement les prix) d'une entrée.

    Règle métier : quantity_sold <= quantity_received. En cas de survente,
    rien n'est modifié. `unit_price` / `selling_price` non fournis restent
    inchangés.
    """
    stock = _get_owned_stock(db, owner_id=owner_id, stock_id=stock_id)
    _check_not_overselling(quantity_sold, stock.quantity_received)

    stock.quantity_sold = quantity_sold
    if unit_price is not _UNSET:
        if unit_price is None:
            raise ValidationError("unitPrice cannot be null")
        stock.unit_price = unit_price
    if selling_price is not _UNSET:
        stock.selling_price = selling_price

    stock.updated_at = now_timestamp()
    db.flush()
    logger.info("Stock %s sales updated: sold=%s", stock.id, quantity_sold)
    return stock


def filter_stocks(
    db: Session,
    *,
    owner_id: str,
    year: int,
    week: int | None = None,
    start_week: int | None = None,
    end_week: int | None = None,
) -> list[Stock]:
    stmt = (
        select(Stock)
        .where(Stock.owner_id == owner_id)
        .where(Stock.year == year)
        .order_by(Stock.week.asc(), Stock.id.asc())
    )

    clause = week_clause(week, start_week, end_week)
    if clause is not None:
        stmt = stmt.where(clause)

    return list(db.execute(stmt).scalars().all())
