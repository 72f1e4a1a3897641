"""
Loads stored rows into engine records and runs the analytics over them.

load_*_snapshot() take an open session and only read. The event_* helpers
open their own session via get_session(), the way the host process calls
into the store.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from leadcapture.database import get_session
from leadcapture.models.event import Event
from leadcapture.models.form import Form, FormField
from leadcapture.models.lead import Lead, LeadFieldValue
from leadcapture.analytics.event_stats import compute_event_stats, compute_events_overview
from leadcapture.analytics.records import (
    EventRecord, FieldRecord, FieldValueRecord, FormRecord, LeadRecord,
)
from leadcapture.analytics.report import compute_event_analytics

logger = logging.getLogger('services.snapshots')


@dataclass(frozen=True)
class EventSnapshot:
    """Every record compute_event_analytics() needs for one event."""
    event: EventRecord
    forms: Tuple[FormRecord, ...]
    fields: Tuple[FieldRecord, ...]
    leads: Tuple[LeadRecord, ...]
    values: Tuple[FieldValueRecord, ...]


@dataclass(frozen=True)
class OverviewSnapshot:
    events: Tuple[EventRecord, ...]
    forms: Tuple[FormRecord, ...]
    leads: Tuple[LeadRecord, ...]


def load_event_snapshot(session, event_id) -> Optional[EventSnapshot]:
    """Records of one event, or None if the event does not exist."""
    event = session.get(Event, event_id)
    if event is None:
        return None

    forms = session.query(Form).filter(Form.event_id == event_id).order_by(Form.id).all()
    fields = (
        session.query(FormField)
        .join(Form, Form.id == FormField.form_id)
        .filter(Form.event_id == event_id)
        .order_by(FormField.form_id, FormField.order, FormField.id)
        .all()
    )
    leads = session.query(Lead).filter(Lead.event_id == event_id).order_by(Lead.created_at, Lead.id).all()
    values = (
        session.query(LeadFieldValue)
        .join(Lead, Lead.id == LeadFieldValue.lead_id)
        .filter(Lead.event_id == event_id)
        .order_by(LeadFieldValue.id)
        .all()
    )

    logger.debug(
        "Loaded event %s: %d forms, %d fields, %d leads, %d values",
        event_id, len(forms), len(fields), len(leads), len(values),
    )
    return EventSnapshot(
        event=event.to_record(),
        forms=tuple(f.to_record() for f in forms),
        fields=tuple(f.to_record() for f in fields),
        leads=tuple(l.to_record() for l in leads),
        values=tuple(v.to_record() for v in values),
    )


def load_overview_snapshot(session) -> OverviewSnapshot:
    """All events with their forms and form-scoped leads. Templates are skipped."""
    events = session.query(Event).order_by(Event.id).all()
    forms = session.query(Form).filter(Form.event_id.isnot(None)).order_by(Form.id).all()
    leads = session.query(Lead).filter(Lead.form_id.isnot(None)).order_by(Lead.id).all()
    return OverviewSnapshot(
        events=tuple(e.to_record() for e in events),
        forms=tuple(f.to_record() for f in forms),
        leads=tuple(l.to_record() for l in leads),
    )


def _utcnow():
    return datetime.now(timezone.utc)


# ── Entry points for the host process ───────────────────────────────────────

def event_analytics(event_id, form_id=None, date_from=None, date_to=None, tz=None):
    """
    Analytics report for a stored event, or None if it does not exist.

    InvalidFilter from the engine propagates to the caller.
    """
    session = get_session()
    try:
        snapshot = load_event_snapshot(session, event_id)
    finally:
        session.close()

    if snapshot is None:
        logger.warning("Analytics requested for unknown event %s", event_id)
        return None
    return compute_event_analytics(
        snapshot.event, snapshot.forms, snapshot.fields, snapshot.leads, snapshot.values,
        form_id=form_id, date_from=date_from, date_to=date_to, tz=tz,
    )


def event_stats(event_id, days=None, now=None, tz=None):
    """Lead count stats for a stored event, or None if it does not exist."""
    session = get_session()
    try:
        snapshot = load_event_snapshot(session, event_id)
    finally:
        session.close()

    if snapshot is None:
        logger.warning("Stats requested for unknown event %s", event_id)
        return None
    return compute_event_stats(snapshot.event, snapshot.forms, snapshot.leads, now or _utcnow(), days=days, tz=tz)


def events_overview(now=None, tz=None):
    """Lead count stats for every stored event, newest first."""
    session = get_session()
    try:
        snapshot = load_overview_snapshot(session)
    finally:
        session.close()
    return compute_events_overview(snapshot.events, snapshot.forms, snapshot.leads, now or _utcnow(), tz=tz)
