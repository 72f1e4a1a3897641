"""
Plain input records and the read-only indexes built from them.

The engine consumes these instead of ORM rows so it can run against any
already-fetched snapshot. Indexes are built once per computation and shared
read-only by the aggregation passes.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set, Union

from leadcapture.analytics.field_types import FieldType


@dataclass(frozen=True)
class EventRecord:
    id: int
    name: str
    start_date: Optional[Union[date, datetime]] = None
    end_date: Optional[Union[date, datetime]] = None


@dataclass(frozen=True)
class FormRecord:
    id: int
    name: str
    is_template: bool = False
    event_id: Optional[int] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class FieldRecord:
    id: int
    form_id: int
    key: str
    label: str
    type: str
    order: int = 0

    @property
    def field_type(self) -> FieldType:
        return FieldType.parse(self.type)


@dataclass(frozen=True)
class LeadRecord:
    id: int
    form_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class FieldValueRecord:
    id: int
    lead_id: int
    field_id: int
    value: Optional[str] = None


def clean_value(value) -> str:
    """Trimmed string form of a raw value. None and blanks become ''."""
    if value is None:
        return ''
    return str(value).strip()


class FieldCatalog:
    """
    Fields of the selected forms, grouped by form in display order.

    Fields of forms outside the selection are ignored. Field types are
    resolved once here so unknown type names are reported a single time.
    """

    def __init__(self, fields: Iterable[FieldRecord], form_ids: Iterable[int]):
        self.form_ids = list(form_ids)
        selected = set(self.form_ids)

        self.by_form: Dict[int, List[FieldRecord]] = {form_id: [] for form_id in self.form_ids}
        self.by_id: Dict[int, FieldRecord] = {}
        self.types: Dict[int, FieldType] = {}

        for field in fields:
            if field.form_id not in selected:
                continue
            self.by_form[field.form_id].append(field)
            self.by_id[field.id] = field
            self.types[field.id] = field.field_type

        for form_fields in self.by_form.values():
            form_fields.sort(key=lambda f: (f.order, f.id))

        self._field_ids = {
            form_id: {f.id for f in form_fields}
            for form_id, form_fields in self.by_form.items()
        }

    def fields_in_order(self) -> List[FieldRecord]:
        """All fields, form by form, each form's fields in display order."""
        ordered = []
        for form_id in self.form_ids:
            ordered.extend(self.by_form[form_id])
        return ordered

    def field_ids(self, form_id) -> Set[int]:
        return self._field_ids.get(form_id, set())

    def type_of(self, field_id) -> FieldType:
        return self.types[field_id]


def index_values(values: Iterable[FieldValueRecord], lead_ids: Iterable[int]) -> Dict[int, List[FieldValueRecord]]:
    """Group value rows by lead id, keeping only rows for the given leads."""
    index = {lead_id: [] for lead_id in lead_ids}
    for value in values:
        rows = index.get(value.lead_id)
        if rows is not None:
            rows.append(value)
    return index


def index_filled_fields(values_by_lead: Dict[int, List[FieldValueRecord]]) -> Dict[int, Set[int]]:
    """lead id → set of field ids with at least one non-blank value."""
    filled = {}
    for lead_id, rows in values_by_lead.items():
        filled[lead_id] = {row.field_id for row in rows if clean_value(row.value)}
    return filled


def count_leads_by_form(leads: Iterable[LeadRecord]) -> Dict[int, int]:
    """Lead count per form, unscoped leads excluded."""
    counts = {}
    for lead in leads:
        if lead.form_id is None:
            continue
        counts[lead.form_id] = counts.get(lead.form_id, 0) + 1
    return counts


def form_display_name(form_names: Dict[int, str], form_id) -> str:
    name = form_names.get(form_id)
    return name if name else f'Form #{form_id}'
