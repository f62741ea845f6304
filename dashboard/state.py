"""
État du dashboard et ses transitions.

`DashboardState` est immuable ; chaque action utilisateur est un petit objet
action et `reduce(state, action)` renvoie l'état suivant. Les effets de bord
(HTTP, horloge) vivent dans `dashboard.controller`, qui réinjecte leurs
résultats sous forme d'actions.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from dashboard.schema import NUMERIC_TRACKED, TRACKED_FIELDS, blank_row, coerce, coerce_row, to_number

NEW_ROW_ID = "new"
TEMP_ID_PREFIX = "temp-"


@dataclass(frozen=True)
class DashboardState:
    fetched: tuple = ()  # dernière liste fournie par l'API
    stocks: tuple = ()  # lignes affichées, plus récentes d'abord, lignes temp en tête
    edit_mode: bool = False
    editable: dict = field(default_factory=dict)
    new_row: dict | None = None


# ---------- Actions ----------
@dataclass(frozen=True)
class Loaded:
    stocks: list


@dataclass(frozen=True)
class EnterEdit:
    pass


@dataclass(frozen=True)
class EditField:
    target_id: str
    field: str
    value: object


@dataclass(frozen=True)
class AddRow:
    pass


@dataclass(frozen=True)
class DiscardNewRow:
    pass


@dataclass(frozen=True)
class CommitNewRow:
    entry: dict


@dataclass(frozen=True)
class Created:
    temp_ids: tuple


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Saved:
    pass


# ---------- Helpers ----------
def _created_key(stock: dict) -> datetime:
    raw = stock.get("createdAt") or ""
    try:
        dt = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def sort_newest_first(stocks) -> tuple:
    return tuple(sorted(stocks, key=_created_key, reverse=True))


def is_temp_id(stock_id: str) -> bool:
    return str(stock_id).startswith(TEMP_ID_PREFIX)


def _same(field_name: str, before, after) -> bool:
    if field_name in NUMERIC_TRACKED:
        if before is None and after is None:
            return True
        return to_number(before) == to_number(after)
    return before == after


def changed_entries(state: DashboardState) -> list[dict]:
    """Copies éditables des lignes stockées qui diffèrent du snapshot chargé."""
    originals = {s["id"]: s for s in state.fetched}
    changed = []
    for stock_id, stock in state.editable.items():
        original = originals.get(stock_id)
        if original is None:
            continue
        if any(not _same(f, original.get(f), stock.get(f)) for f in TRACKED_FIELDS):
            changed.append(stock)
    return changed


def pending_new_entries(state: DashboardState) -> list[dict]:
    """Lignes temp validées, pas encore créées côté serveur."""
    return [s for stock_id, s in state.editable.items() if is_temp_id(stock_id)]


# ---------- Reducer ----------
def reduce(state: DashboardState, action) -> DashboardState:
    if isinstance(action, Loaded):
        stocks = sort_newest_first(action.stocks)
        return replace(state, fetched=stocks, stocks=stocks)

    if isinstance(action, EnterEdit):
        editable = {s["id"]: copy.deepcopy(s) for s in state.stocks}
        return replace(state, edit_mode=True, editable=editable)

    if isinstance(action, EditField):
        if action.target_id == NEW_ROW_ID:
            # le brouillon garde la saisie brute jusqu'à sa validation
            draft = dict(state.new_row or blank_row())
            draft[action.field] = action.value
            return replace(state, new_row=draft)

        if action.target_id not in state.editable:
            return state
        row = dict(state.editable[action.target_id])
        row[action.field] = coerce(action.field, action.value)
        editable = dict(state.editable)
        editable[action.target_id] = row
        return replace(state, editable=editable)

    if isinstance(action, AddRow):
        # hors mode édition : snapshot des lignes affichées, comme EnterEdit
        editable = state.editable
        if not state.edit_mode:
            editable = {s["id"]: copy.deepcopy(s) for s in state.stocks}
        return replace(state, new_row=blank_row(), edit_mode=True, editable=editable)

    if isinstance(action, DiscardNewRow):
        return replace(state, new_row=None)

    if isinstance(action, CommitNewRow):
        entry = coerce_row(action.entry)
        editable = dict(state.editable)
        editable[entry["id"]] = copy.deepcopy(entry)
        return replace(
            state,
            stocks=(entry,) + tuple(state.stocks),
            editable=editable,
            new_row=None,
        )

    if isinstance(action, Created):
        # lignes temp désormais en base : ne plus les renvoyer au prochain save
        created = set(action.temp_ids)
        editable = {k: v for k, v in state.editable.items() if k not in created}
        stocks = tuple(s for s in state.stocks if s["id"] not in created)
        return replace(state, stocks=stocks, editable=editable)

    if isinstance(action, (Cancel, Saved)):
        # les lignes temp non envoyées disparaissent aussi de l'affichage
        stocks = tuple(s for s in state.stocks if not is_temp_id(s["id"]))
        return replace(state, stocks=stocks, edit_mode=False, editable={}, new_row=None)

    raise TypeError(f"Unknown dashboard action: {action!r}")
