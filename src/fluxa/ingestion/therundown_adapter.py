"""TheRundown adapter — today's games across the major US leagues."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter, resolve_api_key
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.errors import UpstreamRequestError
from fluxa.ingestion.http import get_json, rapidapi_headers
from fluxa.ingestion.normalize import NormalizedItem, extract_records, first_date, first_text

logger = logging.getLogger(__name__)

_BASE_URL = "https://therundown-therundown-v1.p.rapidapi.com"
_HOST = "therundown-therundown-v1.p.rapidapi.com"

# Sports with events through most of the year
SPORTS = (
    ("4", "NBA"),
    ("6", "NHL"),
    ("5", "NCAA Basketball"),
    ("3", "MLB"),
    ("2", "NFL"),
)

_STATUS_FINAL = "STATUS_FINAL"
_STATUS_LIVE = frozenset({"STATUS_IN_PROGRESS", "STATUS_HALFTIME"})
_SPORT_FIELD = "_sport_name"


class TheRundownAdapter(ContentAdapter):
    """Adapter for TheRundown events, one request per sport.

    A failing sport is logged and skipped so the other leagues still land.
    """

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()

    @property
    def source_key(self) -> str:
        return "therundown"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        base_url = self._options.base_url or _BASE_URL
        headers = rapidapi_headers(api_key, self._options.host or _HOST)
        today = datetime.now(timezone.utc).date().isoformat()
        events: list[dict[str, Any]] = []

        for sport_id, sport_name in SPORTS:
            if len(events) >= self._options.max_items_per_run:
                break
            try:
                payload = get_json(
                    f"{base_url}/sports/{sport_id}/events/{today}",
                    label=f"TheRundown {sport_name}",
                    headers=headers,
                    timeout=self._options.timeout,
                )
            except UpstreamRequestError as exc:
                logger.warning("[TheRundown] %s fetch failed: %s", sport_name, exc)
                continue
            for event in extract_records(payload, ("events",), allow_bare_list=False):
                events.append({**event, _SPORT_FIELD: sport_name})

        return {"events": events}

    def parse(self, raw: Any) -> list[NormalizedItem]:
        items: list[NormalizedItem] = []
        events = extract_records(raw, ("events",), allow_bare_list=False)
        for event in events[: self._options.max_items_per_run]:
            item = _parse_event(event)
            if item is not None:
                items.append(item)
        return items


def _team_name(team: Mapping) -> str:
    name = first_text(team, "name") or "TBD"
    mascot = first_text(team, "mascot")
    return f"{name} {mascot}" if mascot else name


def _periods(value: object) -> str | None:
    if not isinstance(value, list):
        return None
    return "-".join(str(v) for v in value)


def _parse_event(event: Mapping) -> NormalizedItem | None:
    teams = event.get("teams_normalized") or event.get("teams")
    if not isinstance(teams, list) or len(teams) < 2:
        return None
    if not all(isinstance(team, Mapping) for team in teams):
        return None

    away = next((t for t in teams if t.get("is_away")), teams[0])
    home = next((t for t in teams if t.get("is_home")), teams[1])
    score = event.get("score")
    if not isinstance(score, Mapping):
        score = {}
    sport = first_text(event, _SPORT_FIELD) or "Sports"

    event_status = score.get("event_status")
    status = first_text(score, "event_status_detail", "event_status") or ""
    is_final = event_status == _STATUS_FINAL
    is_live = isinstance(event_status, str) and event_status in _STATUS_LIVE

    away_name = _team_name(away)
    home_name = _team_name(home)
    if is_final:
        title = f"{away_name} {score.get('score_away')} - {home_name} {score.get('score_home')} (Final)"
    elif is_live:
        title = (
            f"{away_name} {score.get('score_away') or 0} - "
            f"{home_name} {score.get('score_home') or 0} (Live)"
        )
    else:
        title = f"{away_name} at {home_name}"

    parts = [sport]
    venue_name = first_text(score, "venue_name")
    if venue_name:
        venue_location = first_text(score, "venue_location")
        parts.append(f"{venue_name}, {venue_location}" if venue_location else venue_name)
    for team in (away, home):
        record = first_text(team, "record")
        if record:
            parts.append(f"{first_text(team, 'abbreviation', 'name') or 'TBD'} ({record})")
    if is_final:
        away_periods = _periods(score.get("score_away_by_period"))
        home_periods = _periods(score.get("score_home_by_period"))
        if away_periods is not None and home_periods is not None:
            parts.append(f"Q: {away_periods} / {home_periods}")
    broadcast = first_text(score, "broadcast")
    if broadcast:
        parts.append(f"TV: {broadcast}")
    if status and not is_final and not is_live:
        parts.append(status)

    return NormalizedItem(
        title=title,
        excerpt=" · ".join(parts),
        published_at=first_date(score, "updated_at") or first_date(event, "event_date"),
        external_id=first_text(event, "event_id"),
        categories=(sport,),
        content_type="sports",
        raw_data=event,
    )
