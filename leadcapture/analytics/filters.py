"""
Date-range and form-set resolution.

This is the only place lenient input handling lives: malformed date strings
and non-numeric form ids are logged and replaced by defaults here, so the
aggregation passes only ever see resolved values.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from leadcapture.config import ANALYTICS_TIMEZONE
from leadcapture.analytics.errors import InvalidFilter
from leadcapture.analytics.records import EventRecord, FormRecord, LeadRecord

logger = logging.getLogger('analytics.filters')

END_OF_DAY = time(23, 59, 59, 999000)

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


# ── Time helpers ──────────────────────────────────────────────────────────────

def resolve_tz(tz=None) -> tzinfo:
    """Explicit tz, a zone name, or the configured ANALYTICS_TIMEZONE."""
    if tz is None:
        tz = ANALYTICS_TIMEZONE
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def to_local(ts: datetime, tz: tzinfo) -> datetime:
    """Naive wall-clock time of ts in tz. Naive timestamps are already local."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(tz).replace(tzinfo=None)


def format_date_key(d) -> str:
    return d.strftime('%Y-%m-%d')


def parse_leading_int(text) -> Optional[int]:
    """Integer from the leading digits of text ("12abc" -> 12). None if there are none."""
    match = _LEADING_INT.match(str(text))
    if match is None:
        return None
    return int(match.group(1))


def parse_date_only(value) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string. Returns None for anything malformed.

    Components may omit zero padding ("2025-3-7"). Each component is read
    from its leading digits, so "2025-03-07T10:00:00" is 2025-03-07.
    """
    if value is None:
        return None
    trimmed = str(value).strip()
    if not trimmed:
        return None
    parts = trimmed.split('-')
    if len(parts) != 3:
        return None
    year, month, day = (parse_leading_int(p) for p in parts)
    if year is None or month is None or day is None:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


# ── Resolved filters ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ResolvedFilters:
    """Form set and inclusive date window a computation runs against."""
    form_ids: Tuple[int, ...]
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    explicit_form: bool = False

    @property
    def lower_bound(self) -> Optional[datetime]:
        if self.date_from is None:
            return None
        return datetime.combine(self.date_from, time.min)

    @property
    def upper_bound(self) -> Optional[datetime]:
        if self.date_to is None:
            return None
        return datetime.combine(self.date_to, END_OF_DAY)

    def contains(self, local_ts: datetime) -> bool:
        """Inclusive on both ends. local_ts must be naive wall-clock time."""
        lower = self.lower_bound
        if lower is not None and local_ts < lower:
            return False
        upper = self.upper_bound
        if upper is not None and local_ts > upper:
            return False
        return True

    def to_dict(self) -> dict:
        return {
            'formIds': list(self.form_ids),
            'from': format_date_key(self.date_from) if self.date_from else None,
            'to': format_date_key(self.date_to) if self.date_to else None,
        }


def _parse_form_id(form_id) -> Optional[int]:
    if form_id is None:
        return None
    if isinstance(form_id, int) and not isinstance(form_id, bool):
        return form_id
    text = str(form_id).strip()
    if not text:
        return None
    parsed = parse_leading_int(text)
    if parsed is None:
        logger.warning("Ignoring non-numeric form filter %r", form_id)
    return parsed


def analytic_forms(forms: Iterable[FormRecord]) -> List[FormRecord]:
    """Forms that take part in analytics. Templates never do."""
    return [f for f in forms if not f.is_template]


def resolve_form_ids(event: EventRecord, forms: Iterable[FormRecord], form_id=None) -> Tuple[List[int], bool]:
    """
    Form ids to analyse and whether an explicit filter was applied.

    Returns an empty list when the event has no forms. Raises InvalidFilter
    when an explicit form id is not one of the event's forms.
    """
    all_ids = [f.id for f in analytic_forms(forms)]
    if not all_ids:
        return [], False

    parsed = _parse_form_id(form_id)
    if parsed is None:
        return all_ids, False

    if parsed not in all_ids:
        raise InvalidFilter(parsed, event.id)
    return [parsed], True


def resolve_date_range(event: EventRecord, date_from=None, date_to=None) -> Tuple[Optional[date], Optional[date]]:
    """
    Inclusive (from, to) dates.

    Explicit values win; malformed ones are ignored. Missing values fall back
    to the event's start/end date, or no bound at all.
    """
    parsed_from = parse_date_only(date_from)
    if parsed_from is None and date_from not in (None, ''):
        logger.warning("Ignoring malformed 'from' date %r for event %s", date_from, event.id)

    parsed_to = parse_date_only(date_to)
    if parsed_to is None and date_to not in (None, ''):
        logger.warning("Ignoring malformed 'to' date %r for event %s", date_to, event.id)

    resolved_from = parsed_from or as_date(event.start_date)
    resolved_to = parsed_to or as_date(event.end_date)
    return resolved_from, resolved_to


def resolve_filters(event: EventRecord, forms: Iterable[FormRecord], form_id=None,
                    date_from=None, date_to=None) -> ResolvedFilters:
    """Resolve the raw query filters against the event."""
    form_ids, explicit = resolve_form_ids(event, forms, form_id)
    resolved_from, resolved_to = resolve_date_range(event, date_from, date_to)
    return ResolvedFilters(
        form_ids=tuple(form_ids),
        date_from=resolved_from,
        date_to=resolved_to,
        explicit_form=explicit,
    )


def select_leads(leads: Iterable[LeadRecord], filters: ResolvedFilters, tz=None) -> List[LeadRecord]:
    """
    Leads in scope for the resolved filters.

    Leads of the selected forms are kept. Unscoped leads (no form) are kept
    only when no explicit form filter was given. Timestamps are compared in
    local wall-clock time against the inclusive window.
    """
    zone = resolve_tz(tz)
    selected = set(filters.form_ids)
    kept = []
    for lead in leads:
        if lead.form_id is None:
            if filters.explicit_form:
                continue
        elif lead.form_id not in selected:
            continue
        if not filters.contains(to_local(lead.created_at, zone)):
            continue
        kept.append(lead)
    return kept
