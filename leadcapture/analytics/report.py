"""
Event analytics report — the engine's single entry point.

compute_event_analytics() resolves the filters, selects the leads in scope,
runs the three independent aggregation passes (funnel, field statistics,
lead quality) over the same read-only snapshot and assembles one immutable
AnalyticsReport. Nothing is cached between calls.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from leadcapture.analytics.field_stats import FieldStats, aggregate_field_stats
from leadcapture.analytics.filters import (
    ResolvedFilters, analytic_forms, resolve_filters, resolve_tz, select_leads,
)
from leadcapture.analytics.funnel import Funnel, aggregate_funnel, empty_funnel
from leadcapture.analytics.quality import LeadQuality, score_lead_quality
from leadcapture.analytics.records import (
    EventRecord, FieldCatalog, FieldRecord, FieldValueRecord, FormRecord, LeadRecord,
    index_filled_fields, index_values,
)

logger = logging.getLogger('analytics.report')


@dataclass(frozen=True)
class AnalyticsReport:
    event_id: int
    event_name: str
    filters: ResolvedFilters
    funnel: Funnel
    fields: FieldStats
    lead_quality: LeadQuality

    def to_dict(self) -> dict:
        """Plain nested structure for rendering/serialization collaborators."""
        return {
            'event': {'id': self.event_id, 'name': self.event_name},
            'filters': self.filters.to_dict(),
            'funnel': self.funnel.to_dict(),
            'fields': self.fields.to_dict(),
            'leadQuality': self.lead_quality.to_dict(),
        }


def assemble_report(event: EventRecord, filters: ResolvedFilters, funnel: Funnel,
                    fields: FieldStats, lead_quality: LeadQuality) -> AnalyticsReport:
    return AnalyticsReport(
        event_id=event.id,
        event_name=event.name,
        filters=filters,
        funnel=funnel,
        fields=fields,
        lead_quality=lead_quality,
    )


def empty_report(event: EventRecord, filters: Optional[ResolvedFilters] = None) -> AnalyticsReport:
    """Zero-valued report for an event without forms."""
    if filters is None:
        filters = ResolvedFilters(form_ids=())
    return assemble_report(event, filters, empty_funnel(), FieldStats(), LeadQuality())


def compute_event_analytics(
    event: EventRecord,
    forms: Iterable[FormRecord],
    fields: Iterable[FieldRecord],
    leads: Iterable[LeadRecord],
    values: Iterable[FieldValueRecord],
    form_id=None,
    date_from=None,
    date_to=None,
    tz=None,
) -> AnalyticsReport:
    """
    Compute the analytics report for one event.

    Args:
        event:    The event being analysed.
        forms:    Forms of the event, in display order. Templates are ignored.
        fields:   Field definitions; fields of unselected forms are ignored.
        leads:    Leads of the event. May be pre-filtered; leads outside the
                  resolved form set or date window are dropped either way.
        values:   Captured field values for those leads.
        form_id:  Optional form filter (int or numeric string).
        date_from / date_to: Optional inclusive "YYYY-MM-DD" bounds. Malformed
                  values are ignored in favour of the event's own dates.
        tz:       Zone for day/hour bucketing; defaults to ANALYTICS_TIMEZONE.

    Raises:
        InvalidFilter: form_id is not one of the event's forms.
    """
    forms = analytic_forms(forms)
    zone = resolve_tz(tz)
    filters = resolve_filters(event, forms, form_id=form_id, date_from=date_from, date_to=date_to)

    if not filters.form_ids:
        logger.info("Event %s has no forms, returning empty analytics", event.id)
        return empty_report(event, filters)

    form_names = {f.id: f.name for f in forms}
    scoped_leads = select_leads(leads, filters, tz=zone)
    catalog = FieldCatalog(fields, filters.form_ids)
    values_by_lead = index_values(values, (lead.id for lead in scoped_leads))
    filled_by_lead = index_filled_fields(values_by_lead)

    logger.debug(
        "Event %s: %d forms, %d fields, %d leads in scope",
        event.id, len(filters.form_ids), len(catalog.by_id), len(scoped_leads),
    )

    funnel = aggregate_funnel(scoped_leads, tz=zone)
    field_stats = aggregate_field_stats(catalog, scoped_leads, values_by_lead, form_names)
    lead_quality = score_lead_quality(catalog, scoped_leads, filled_by_lead, form_names)

    return assemble_report(event, filters, funnel, field_stats, lead_quality)
