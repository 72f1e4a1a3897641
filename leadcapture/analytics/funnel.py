"""
Funnel aggregation — leads per local calendar day and per hour of day.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from leadcapture.analytics.filters import format_date_key, resolve_tz, to_local
from leadcapture.analytics.records import LeadRecord

logger = logging.getLogger('analytics.funnel')

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class DayCount:
    date: str
    lead_count: int


@dataclass(frozen=True)
class HourCount:
    hour: int
    lead_count: int


@dataclass(frozen=True)
class Funnel:
    by_day: Tuple[DayCount, ...]
    by_hour: Tuple[HourCount, ...]
    active_days: int = 0
    avg_leads_per_day: float = 0.0
    peak_hour: Optional[int] = None
    peak_hour_lead_count: Optional[int] = None

    @property
    def total_leads(self) -> int:
        return sum(h.lead_count for h in self.by_hour)

    def to_dict(self) -> dict:
        return {
            'byDay': [{'date': d.date, 'leadCount': d.lead_count} for d in self.by_day],
            'byHour': [{'hour': h.hour, 'leadCount': h.lead_count} for h in self.by_hour],
            'activeDays': self.active_days,
            'avgLeadsPerDay': self.avg_leads_per_day,
            'peakHour': self.peak_hour,
            'peakHourLeadCount': self.peak_hour_lead_count,
        }


def empty_funnel() -> Funnel:
    return Funnel(
        by_day=(),
        by_hour=tuple(HourCount(hour=h, lead_count=0) for h in range(HOURS_PER_DAY)),
    )


def find_peak_hour(hour_counts) -> Tuple[Optional[int], Optional[int]]:
    """(hour, count) with the strictly greatest count, earliest hour on ties.

    Returns (None, None) when every hour is empty.
    """
    peak_hour = None
    peak_count = None
    for hour, count in enumerate(hour_counts):
        if count <= 0:
            continue
        if peak_count is None or count > peak_count:
            peak_hour = hour
            peak_count = count
    return peak_hour, peak_count


def aggregate_funnel(leads: Iterable[LeadRecord], tz=None) -> Funnel:
    """Bucket leads by local day and hour, derive activity and peak metrics."""
    zone = resolve_tz(tz)
    day_counts = {}
    hour_counts = [0] * HOURS_PER_DAY
    total = 0

    for lead in leads:
        local = to_local(lead.created_at, zone)
        day_key = format_date_key(local)
        day_counts[day_key] = day_counts.get(day_key, 0) + 1
        hour_counts[local.hour] += 1
        total += 1

    by_day = tuple(DayCount(date=day, lead_count=day_counts[day]) for day in sorted(day_counts))
    active_days = len(by_day)
    avg_leads_per_day = total / active_days if active_days > 0 else 0.0
    peak_hour, peak_count = find_peak_hour(hour_counts)

    logger.debug("Funnel: %d leads over %d active days, peak hour %s", total, active_days, peak_hour)

    return Funnel(
        by_day=by_day,
        by_hour=tuple(HourCount(hour=h, lead_count=c) for h, c in enumerate(hour_counts)),
        active_days=active_days,
        avg_leads_per_day=avg_leads_per_day,
        peak_hour=peak_hour,
        peak_hour_lead_count=peak_count,
    )
