from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import requests

from dashboard import state as st
from dashboard.api_client import ApiError, ApiSession, StockApiClient
from dashboard.clock import TimeSource
from dashboard.schema import missing_fields

logger = logging.getLogger(__name__)

NO_CHANGES = "No changes detected."
SAVED = "Stock's Updated"
SAVE_FAILED = "Failed to update stock"
FETCH_FAILED = "Failed to load stock"
MISSING_FIELDS = "Please fill in all required fields."


def _log_notify(message: str) -> None:
    logger.info("%s", message)


class DashboardController:
    """
    Exécute les effets de bord du dashboard (appels API, horloge) et passe
    leurs résultats au reducer. `notify` remplace l'alerte bloquante de l'UI.
    """

    def __init__(
        self,
        session: ApiSession,
        api: StockApiClient | None = None,
        clock: TimeSource | None = None,
        notify: Callable[[str], None] = _log_notify,
    ):
        self.session = session
        self.api = api or StockApiClient()
        self.clock = clock or TimeSource()
        self.notify = notify
        self.state = st.DashboardState()

    def dispatch(self, action) -> st.DashboardState:
        self.state = st.reduce(self.state, action)
        return self.state

    # ---------- Loading ----------
    def refresh(self) -> bool:
        try:
            stocks = self.api.list_stocks(self.session)
        except (ApiError, requests.RequestException) as exc:
            logger.error("Error fetching stocks: %s", exc)
            self.notify(FETCH_FAILED)
            return False
        self.dispatch(st.Loaded(stocks or []))
        return True

    def load_filtered(
        self,
        *,
        year: int,
        week: int | None = None,
        start_week: int | None = None,
        end_week: int | None = None,
    ) -> bool:
        try:
            stocks = self.api.filter_stocks(
                self.session, year=year, week=week, start_week=start_week, end_week=end_week
            )
        except (ApiError, requests.RequestException) as exc:
            logger.error("Error fetching filtered stocks: %s", exc)
            self.notify(FETCH_FAILED)
            return False
        self.dispatch(st.Loaded(stocks or []))
        return True

    # ---------- Local edits ----------
    def enter_edit(self) -> None:
        self.dispatch(st.EnterEdit())

    def edit_field(self, target_id: str, field: str, value) -> None:
        self.dispatch(st.EditField(target_id, field, value))

    def add_row(self) -> None:
        self.dispatch(st.AddRow())

    def discard_new_row(self) -> None:
        self.dispatch(st.DiscardNewRow())

    def cancel(self) -> None:
        self.dispatch(st.Cancel())

    def commit_new_row(self) -> bool:
        """Valide le brouillon et l'affiche en tête ; il sera créé au prochain save."""
        if missing_fields(self.state.new_row):
            self.notify(MISSING_FIELDS)
            return False

        now = self.clock.now()
        entry = {
            **self.state.new_row,
            "id": f"{st.TEMP_ID_PREFIX}{int(time.time() * 1000)}",
            "week": now.week,
            "year": now.year,
            "createdAt": now.stamp,
            "updatedAt": now.stamp,
        }
        self.dispatch(st.CommitNewRow(entry))
        return True

    # ---------- Save ----------
    def _calls(self, stamp: str) -> list[tuple[str | None, Callable[[], dict]]]:
        """(id temp ou None, appel) ; l'id temp sert à repérer les créations réussies."""
        calls = []
        for stock in st.changed_entries(self.state):
            body = {
                "quantitySold": stock.get("quantitySold") or 0,
                "unitPrice": stock.get("unitPrice"),
                "sellingPrice": stock.get("sellingPrice"),
                "updatedAt": stamp,
            }
            calls.append((None, lambda i=stock["id"], b=body: self.api.update_sales(self.session, i, b)))

        for stock in st.pending_new_entries(self.state):
            body = {k: v for k, v in stock.items() if k != "id"}
            body["quantitySold"] = body.get("quantitySold") or 0
            body["updatedAt"] = stamp
            calls.append((stock["id"], lambda b=body: self.api.add_stock(self.session, b)))
        return calls

    def save(self, max_workers: int | None = None) -> bool:
        """
        Envoie toutes les modifications en parallèle.

        Tout ou rien côté UI : un seul message d'erreur si un appel échoue, et
        le mode édition est conservé pour corriger puis réessayer. Les lignes
        temp déjà créées sont retirées pour ne pas être recréées au prochain
        essai.
        """
        stamp = self.clock.now().stamp
        calls = self._calls(stamp)

        if not calls:
            self.notify(NO_CHANGES)
            return False

        created = []
        failure = None
        with ThreadPoolExecutor(max_workers=max_workers or len(calls)) as pool:
            futures = [(temp_id, pool.submit(call)) for temp_id, call in calls]
            for temp_id, future in futures:
                try:
                    future.result()
                except (ApiError, requests.RequestException) as exc:
                    failure = failure or exc
                    continue
                if temp_id is not None:
                    created.append(temp_id)

        if failure is not None:
            logger.error("Error updating stock: %s", failure)
            if created:
                self.dispatch(st.Created(tuple(created)))
            self.notify(SAVE_FAILED)
            return False

        self.dispatch(st.Saved())
        self.refresh()
        self.notify(SAVED)
        return True
