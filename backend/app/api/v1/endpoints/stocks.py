from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_user, get_db
from backend.app.db.models.models_v1 import User
from backend.app.schemas.stock import SalesUpdate, StockCreate, StockRead, StockUpdated
from backend.services import stocks as stock_service
from backend.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stocks")


# ---------- Helpers ----------
def _server_error(db: Session, exc: SQLAlchemyError) -> HTTPException:
    db.rollback()
    logger.exception("Stock store error: %s", exc)
    return HTTPException(status_code=500, detail="Server error")


# ---------- Endpoints ----------
@router.post("/add", status_code=201)
def add_stock(
    payload: StockCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        stock_service.add_stock(
            db,
            owner_id=user.id,
            item_name=payload.item_name,
            quantity_received=payload.quantity_received,
            quantity_sold=payload.quantity_sold,
            unit_price=payload.unit_price,
            selling_price=payload.selling_price,
            week=payload.week,
            year=payload.year,
            created_at=payload.created_at,
            updated_at=payload.updated_at,
        )
        db.commit()
    except ValidationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))
    except SQLAlchemyError as exc:
        raise _server_error(db, exc)

    return {"message": "Stock added successfully"}


@router.get("/", response_model=list[StockRead])
def list_stocks(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return stock_service.list_stocks(db, owner_id=user.id)
    except SQLAlchemyError as exc:
        raise _server_error(db, exc)


@router.put("/update-sales/{stock_id}", response_model=StockUpdated)
def update_sales(
    stock_id: str,
    payload: SalesUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    # seuls les prix réellement envoyés sont appliqués
    prices = {
        name: getattr(payload, name)
        for name in ("unit_price", "selling_price")
        if name in payload.model_fields_set
    }

    try:
        stock = stock_service.update_sales(
            db,
            owner_id=user.id,
            stock_id=stock_id,
            quantity_sold=payload.quantity_sold,
            **prices,
        )
        db.commit()
        db.refresh(stock)
    except NotFoundError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc))
    except ValidationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))
    except SQLAlchemyError as exc:
        raise _server_error(db, exc)

    return {"message": "Stock updated successfully", "stock": stock}


@router.get("/filter", response_model=list[StockRead])
def filter_stocks(
    year: int,
    week: int | None = None,
    start_week: int | None = Query(default=None, alias="startWeek"),
    end_week: int | None = Query(default=None, alias="endWeek"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Filtre par année (obligatoire) et semaine.
    - startWeek + endWeek : plage inclusive, prioritaire sur `week`
    - tri croissant par semaine
    """
    try:
        return stock_service.filter_stocks(
            db,
            owner_id=user.id,
            year=year,
            week=week,
            start_week=start_week,
            end_week=end_week,
        )
    except SQLAlchemyError as exc:
        raise _server_error(db, exc)
