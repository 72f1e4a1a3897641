"""
Field statistics — fill rate per field, average text length for text fields,
and option frequency for select fields.

A lead earns at most one "filled" credit per field no matter how many value
rows it has for that field. Blank values never count.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from leadcapture.analytics.field_types import Aggregation, FieldType, split_options
from leadcapture.analytics.records import (
    FieldCatalog, FieldRecord, FieldValueRecord, LeadRecord, clean_value, count_leads_by_form,
    form_display_name,
)

logger = logging.getLogger('analytics.field_stats')


@dataclass(frozen=True)
class FieldStat:
    field_id: int
    form_id: int
    form_name: str
    label: str
    type: str
    total_leads: int
    filled_leads: int
    fill_rate: float
    avg_text_length: Optional[float]

    def to_dict(self) -> dict:
        return {
            'fieldId': self.field_id,
            'formId': self.form_id,
            'formName': self.form_name,
            'label': self.label,
            'type': self.type,
            'totalLeads': self.total_leads,
            'filledLeads': self.filled_leads,
            'fillRate': self.fill_rate,
            'avgTextLength': self.avg_text_length,
        }


@dataclass(frozen=True)
class OptionCount:
    value: str
    count: int


@dataclass(frozen=True)
class SelectDistribution:
    field_id: int
    form_id: int
    label: str
    options: Tuple[OptionCount, ...]

    def to_dict(self) -> dict:
        return {
            'fieldId': self.field_id,
            'formId': self.form_id,
            'label': self.label,
            'options': [{'value': o.value, 'count': o.count} for o in self.options],
        }


@dataclass(frozen=True)
class FieldStats:
    per_field: Tuple[FieldStat, ...] = ()
    select_distributions: Tuple[SelectDistribution, ...] = ()

    def to_dict(self) -> dict:
        return {
            'perField': [s.to_dict() for s in self.per_field],
            'selectDistributions': [d.to_dict() for d in self.select_distributions],
        }


# ── Accumulation ─────────────────────────────────────────────────────────────

@dataclass
class _FieldAccumulator:
    record: FieldRecord
    field_type: FieldType
    filled_lead_ids: Set[int] = field(default_factory=set)
    total_text_length: int = 0
    text_value_count: int = 0
    option_counts: Dict[str, int] = field(default_factory=dict)

    def count_option(self, option: str):
        self.option_counts[option] = self.option_counts.get(option, 0) + 1


def _collect_text(acc: _FieldAccumulator, value: str):
    acc.total_text_length += len(value)
    acc.text_value_count += 1


def _collect_single_option(acc: _FieldAccumulator, value: str):
    acc.count_option(value)


def _collect_multi_option(acc: _FieldAccumulator, value: str):
    for option in split_options(value):
        acc.count_option(option)


def _collect_nothing(acc: _FieldAccumulator, value: str):
    pass


_COLLECTORS = {
    Aggregation.TEXT_LENGTH: _collect_text,
    Aggregation.SINGLE_OPTION: _collect_single_option,
    Aggregation.MULTI_OPTION: _collect_multi_option,
    Aggregation.NONE: _collect_nothing,
}


def aggregate_field_stats(
    catalog: FieldCatalog,
    leads: Iterable[LeadRecord],
    values_by_lead: Dict[int, List[FieldValueRecord]],
    form_names: Dict[int, str],
) -> FieldStats:
    """
    Per-field fill rates and select distributions for the leads in scope.

    Value rows are credited only to fields of the lead's own form; rows for
    unknown fields or fields of another form are skipped.
    """
    leads = list(leads)
    accumulators = {
        f.id: _FieldAccumulator(record=f, field_type=catalog.type_of(f.id))
        for f in catalog.fields_in_order()
    }

    skipped = 0
    for lead in leads:
        if lead.form_id is None:
            continue
        for row in values_by_lead.get(lead.id, ()):
            acc = accumulators.get(row.field_id)
            if acc is None or acc.record.form_id != lead.form_id:
                skipped += 1
                continue
            value = clean_value(row.value)
            if not value:
                continue
            acc.filled_lead_ids.add(lead.id)
            _COLLECTORS[acc.field_type.aggregation](acc, value)

    if skipped:
        logger.debug("Skipped %d value rows for fields outside the lead's form", skipped)

    leads_by_form = count_leads_by_form(leads)
    per_field = []
    distributions = []

    for acc in accumulators.values():
        f = acc.record
        total_leads = leads_by_form.get(f.form_id, 0)
        filled_leads = len(acc.filled_lead_ids)
        fill_rate = filled_leads / total_leads if total_leads > 0 else 0.0
        avg_text_length = None
        if acc.field_type.is_text and acc.text_value_count > 0:
            avg_text_length = acc.total_text_length / acc.text_value_count

        per_field.append(FieldStat(
            field_id=f.id,
            form_id=f.form_id,
            form_name=form_display_name(form_names, f.form_id),
            label=f.label,
            type=acc.field_type.value,
            total_leads=total_leads,
            filled_leads=filled_leads,
            fill_rate=fill_rate,
            avg_text_length=avg_text_length,
        ))

        if acc.field_type.is_select and acc.option_counts:
            # sorted() is stable: ties keep first-encountered order
            options = sorted(acc.option_counts.items(), key=lambda item: -item[1])
            distributions.append(SelectDistribution(
                field_id=f.id,
                form_id=f.form_id,
                label=f.label,
                options=tuple(OptionCount(value=v, count=c) for v, c in options),
            ))

    return FieldStats(per_field=tuple(per_field), select_distributions=tuple(distributions))
