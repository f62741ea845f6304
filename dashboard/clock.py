from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import requests

from dashboard.config import TIME_API_TIMEOUT, TIME_API_URL, TIME_ZONE

logger = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def week_of_year(moment: datetime | date) -> int:
    """
    Numéro de semaine des nouvelles lignes.

        week = ceil(((moment - 1er janv.) en jours + jour(1er janv.) + 1) / 7)

    avec dimanche=0 .. samedi=6 et les jours fractionnaires conservés.
    Proche de la numérotation ISO-8601, sans être identique.
    """
    if not isinstance(moment, datetime):
        moment = datetime(moment.year, moment.month, moment.day)
    moment = moment.replace(tzinfo=None)
    start = datetime(moment.year, 1, 1)
    days = (moment - start).total_seconds() / 86400
    first_weekday = (start.weekday() + 1) % 7
    return math.ceil((days + first_weekday + 1) / 7)


@dataclass(frozen=True)
class Now:
    moment: datetime  # heure locale de la zone du dashboard (naïve)
    stamp: str  # ISO-8601 avec offset, envoyé à l'API
    year: int
    week: int
    source: str  # "service" ou "local"


def _parse_service_datetime(value: str) -> datetime:
    return datetime.fromisoformat(_FRACTION_RE.sub(r"\1", value))


class TimeSource:
    """
    Heure courante via le service distant, horloge locale en cas d'échec.

    La réponse suit le format `current/zone` de timeapi.io :
    {"year": 2024, "dateTime": "2024-03-15T10:00:00.1234567", ...},
    dateTime étant exprimé dans `time_zone`.
    """

    def __init__(
        self,
        url: str = TIME_API_URL,
        time_zone: str = TIME_ZONE,
        timeout: float = TIME_API_TIMEOUT,
        http=None,
    ):
        self.url = url
        self.zone = ZoneInfo(time_zone)
        self.timeout = timeout
        self.http = http or requests

    def now(self) -> Now:
        try:
            return self._from_service()
        except (requests.RequestException, KeyError, TypeError, ValueError) as exc:
            logger.warning("Time service failed (%s), using local date instead.", exc)
            return self._from_local()

    def _from_service(self) -> Now:
        response = self.http.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()

        moment = _parse_service_datetime(payload["dateTime"]).replace(tzinfo=None)
        aware = moment.replace(tzinfo=self.zone)
        year = int(payload.get("year", moment.year))
        return Now(
            moment=moment,
            stamp=aware.isoformat(timespec="milliseconds"),
            year=year,
            week=week_of_year(moment),
            source="service",
        )

    def _from_local(self) -> Now:
        moment = datetime.now()
        return Now(
            moment=moment,
            stamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            year=moment.year,
            week=week_of_year(moment),
            source="local",
        )
