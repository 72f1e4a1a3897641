"""
Lead count stats — how many leads came in today, this week and overall.

compute_event_stats() breaks one event down per form and adds a per-day
trend over a trailing window. compute_events_overview() gives the same
counts for every event at once. Both take the reference time `now` as an
argument; "today" is the local calendar day of `now`.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from leadcapture.config import RECENT_DAYS, TREND_DAYS_DEFAULT, TREND_DAYS_MAX
from leadcapture.analytics.filters import (
    as_date, analytic_forms, format_date_key, parse_leading_int, resolve_tz, to_local,
)
from leadcapture.analytics.funnel import DayCount
from leadcapture.analytics.records import EventRecord, FormRecord, LeadRecord

logger = logging.getLogger('analytics.event_stats')


# ── Result types ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LeadCounts:
    total: int = 0
    today: int = 0
    last_7_days: int = 0

    def __add__(self, other: 'LeadCounts') -> 'LeadCounts':
        return LeadCounts(
            total=self.total + other.total,
            today=self.today + other.today,
            last_7_days=self.last_7_days + other.last_7_days,
        )

    def to_dict(self) -> dict:
        return {
            'leadCountTotal': self.total,
            'leadCountToday': self.today,
            'leadCountLast7Days': self.last_7_days,
        }


@dataclass(frozen=True)
class FormLeadCounts:
    form_id: int
    form_name: str
    status: Optional[str]
    counts: LeadCounts

    def to_dict(self) -> dict:
        return {
            'formId': self.form_id,
            'formName': self.form_name,
            'status': self.status,
            **self.counts.to_dict(),
        }


@dataclass(frozen=True)
class EventStats:
    event_id: int
    event_name: str
    start_date: Optional[str]
    end_date: Optional[str]
    trend_days: int
    totals: LeadCounts
    by_form: Tuple[FormLeadCounts, ...]
    by_day: Tuple[DayCount, ...]

    def to_dict(self) -> dict:
        return {
            'event': {
                'id': self.event_id,
                'name': self.event_name,
                'startDate': self.start_date,
                'endDate': self.end_date,
            },
            'totals': self.totals.to_dict(),
            'byForm': [f.to_dict() for f in self.by_form],
            'byDay': [{'date': d.date, 'leadCount': d.lead_count} for d in self.by_day],
        }


@dataclass(frozen=True)
class EventOverview:
    event_id: int
    event_name: str
    start_date: Optional[str]
    end_date: Optional[str]
    form_count: int
    counts: LeadCounts

    def to_dict(self) -> dict:
        return {
            'id': self.event_id,
            'name': self.event_name,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'formCount': self.form_count,
            **self.counts.to_dict(),
        }


# ── Windows ──────────────────────────────────────────────────────────────────

def resolve_trend_days(days=None) -> int:
    """Trend window length in days. Missing or out-of-range values use the default."""
    if days is None or days == '':
        return TREND_DAYS_DEFAULT
    if isinstance(days, int) and not isinstance(days, bool):
        parsed = days
    else:
        parsed = parse_leading_int(days)
    if parsed is None or not 0 < parsed <= TREND_DAYS_MAX:
        logger.warning("Ignoring trend window %r, using %d days", days, TREND_DAYS_DEFAULT)
        return TREND_DAYS_DEFAULT
    return parsed


@dataclass(frozen=True)
class CountWindow:
    """Local wall-clock lower bounds. None of the windows has an upper bound."""
    start_of_today: datetime
    recent_start: datetime
    trend_start: datetime

    @classmethod
    def ending(cls, now: datetime, zone, trend_days: int = TREND_DAYS_DEFAULT) -> 'CountWindow':
        start_of_today = datetime.combine(to_local(now, zone).date(), time.min)
        return cls(
            start_of_today=start_of_today,
            recent_start=start_of_today - timedelta(days=RECENT_DAYS - 1),
            trend_start=start_of_today - timedelta(days=trend_days - 1),
        )


class _Tally:

    def __init__(self):
        self.total = 0
        self.today = 0
        self.recent = 0

    def add(self, local_ts: datetime, window: CountWindow):
        self.total += 1
        if local_ts >= window.start_of_today:
            self.today += 1
        if local_ts >= window.recent_start:
            self.recent += 1

    def freeze(self) -> LeadCounts:
        return LeadCounts(total=self.total, today=self.today, last_7_days=self.recent)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _sum_counts(counts: Iterable[LeadCounts]) -> LeadCounts:
    result = LeadCounts()
    for c in counts:
        result = result + c
    return result


# ── Entry points ─────────────────────────────────────────────────────────────

def compute_event_stats(
    event: EventRecord,
    forms: Iterable[FormRecord],
    leads: Iterable[LeadRecord],
    now: datetime,
    days=None,
    tz=None,
) -> EventStats:
    """
    Per-form lead counts and a per-day trend for one event.

    Args:
        event: The event.
        forms: Forms of the event, in display order. Templates are ignored.
        leads: Leads of the event. Leads without a form or of another form
               are not counted.
        now:   Reference time. Naive values are taken as local.
        days:  Trend window length, 1..365 (int or numeric string). Defaults
               to 30; anything else falls back to the default.
        tz:    Zone for "today" and day keys; defaults to ANALYTICS_TIMEZONE.
    """
    zone = resolve_tz(tz)
    trend_days = resolve_trend_days(days)
    window = CountWindow.ending(now, zone, trend_days)
    forms = analytic_forms(forms)

    tallies: Dict[int, _Tally] = {f.id: _Tally() for f in forms}
    day_counts: Dict[str, int] = {}

    for lead in leads:
        tally = tallies.get(lead.form_id)
        if tally is None:
            continue
        local = to_local(lead.created_at, zone)
        tally.add(local, window)
        if local >= window.trend_start:
            key = format_date_key(local)
            day_counts[key] = day_counts.get(key, 0) + 1

    by_form = tuple(
        FormLeadCounts(form_id=f.id, form_name=f.name, status=f.status, counts=tallies[f.id].freeze())
        for f in forms
    )
    totals = _sum_counts(f.counts for f in by_form)
    by_day = tuple(DayCount(date=day, lead_count=day_counts[day]) for day in sorted(day_counts))

    logger.debug(
        "Event %s stats: %d forms, %d leads total, %d today, trend over %d days",
        event.id, len(by_form), totals.total, totals.today, trend_days,
    )

    return EventStats(
        event_id=event.id,
        event_name=event.name,
        start_date=_iso(event.start_date),
        end_date=_iso(event.end_date),
        trend_days=trend_days,
        totals=totals,
        by_form=by_form,
        by_day=by_day,
    )


def _newest_first(events: List[EventRecord]) -> List[EventRecord]:
    """Start date descending. Events without a start date come first."""
    undated = [e for e in events if e.start_date is None]
    dated = sorted(
        (e for e in events if e.start_date is not None),
        key=lambda e: as_date(e.start_date),
        reverse=True,
    )
    return undated + dated


def compute_events_overview(
    events: Iterable[EventRecord],
    forms: Iterable[FormRecord],
    leads: Iterable[LeadRecord],
    now: datetime,
    tz=None,
) -> Tuple[EventOverview, ...]:
    """
    Form count and lead counts for every event, newest event first.

    Forms are matched to events by FormRecord.event_id; templates and forms
    of unknown events are ignored. Leads count toward their form's event.
    """
    zone = resolve_tz(tz)
    window = CountWindow.ending(now, zone)
    events = list(events)

    tallies: Dict[int, _Tally] = {e.id: _Tally() for e in events}
    form_counts: Dict[int, int] = {e.id: 0 for e in events}
    event_of_form: Dict[int, int] = {}

    for form in analytic_forms(forms):
        if form.event_id not in tallies:
            continue
        event_of_form[form.id] = form.event_id
        form_counts[form.event_id] += 1

    for lead in leads:
        event_id = event_of_form.get(lead.form_id)
        if event_id is None:
            continue
        tallies[event_id].add(to_local(lead.created_at, zone), window)

    logger.debug("Overview: %d events, %d forms", len(events), len(event_of_form))

    return tuple(
        EventOverview(
            event_id=e.id,
            event_name=e.name,
            start_date=_iso(e.start_date),
            end_date=_iso(e.end_date),
            form_count=form_counts[e.id],
            counts=tallies[e.id].freeze(),
        )
        for e in _newest_first(events)
    )
