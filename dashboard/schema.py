"""
Schéma des colonnes du tableau de stock.

Une seule description énumérée des colonnes pilote l'affichage (libellés,
cellules éditables), la conversion des saisies et les champs obligatoires.
"""

from __future__ import annotations

from dataclasses import dataclass

TEXT = "text"
NUMBER = "number"
READONLY = "readonly"


@dataclass(frozen=True)
class Column:
    field: str
    label: str
    editable: bool
    kind: str = TEXT
    required: bool = False


COLUMNS: tuple[Column, ...] = (
    Column("itemName", "ITEM NAME", editable=True, kind=TEXT, required=True),
    Column("quantityReceived", "QUANTITY RECEIVED", editable=True, kind=NUMBER, required=True),
    Column("quantitySold", "QUANTITY SOLD", editable=True, kind=NUMBER),
    Column("unitPrice", "UNIT PRICE", editable=True, kind=NUMBER, required=True),
    Column("sellingPrice", "SELLING PRICE", editable=True, kind=NUMBER, required=True),
    Column("week", "WEEK", editable=False, kind=READONLY),
    Column("createdAt", "CREATED AT", editable=False, kind=READONLY),
    Column("updatedAt", "UPDATED AT", editable=False, kind=READONLY),
)

COLUMNS_BY_FIELD = {c.field: c for c in COLUMNS}

EDITABLE_FIELDS = tuple(c.field for c in COLUMNS if c.editable)
REQUIRED_FIELDS = tuple(c.field for c in COLUMNS if c.required)

# champs comparés au snapshot chargé pour savoir quoi enregistrer
TRACKED_FIELDS = ("itemName", "quantityReceived", "quantitySold", "unitPrice", "sellingPrice")
NUMERIC_TRACKED = ("unitPrice", "sellingPrice")


def to_number(value) -> float:
    """Conversion en float ; vide ou illisible -> 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return number


def coerce(field: str, value):
    column = COLUMNS_BY_FIELD.get(field)
    if column is not None and column.kind == NUMBER:
        return to_number(value)
    return value


def blank_row() -> dict:
    return {c.field: "" for c in COLUMNS if c.editable}


def missing_fields(row: dict | None) -> list[str]:
    if not row:
        return list(REQUIRED_FIELDS)
    return [f for f in REQUIRED_FIELDS if row.get(f) is None or str(row.get(f)).strip() == ""]


def coerce_row(row: dict) -> dict:
    return {field: coerce(field, value) for field, value in row.items()}
