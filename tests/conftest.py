"""Shared test fixtures."""
import itertools
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from leadcapture.database import Base
from leadcapture.models.event import Event
from leadcapture.models.form import Form, FormField
from leadcapture.models.lead import Lead, LeadFieldValue
from leadcapture.analytics.records import (
    EventRecord, FieldRecord, FieldValueRecord, FormRecord, LeadRecord,
)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine('sqlite:///:memory:')
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite. Rolls back after each test."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def stored_event(db_session):
    """An event with one form, a template, two fields and two leads."""
    event = Event(name='Swissbau', start_date=date(2025, 1, 20), end_date=date(2025, 1, 24))
    db_session.add(event)
    db_session.flush()

    form = Form(event_id=event.id, name='Booth')
    template = Form(event_id=None, name='Standard Template')
    db_session.add_all([form, template])
    db_session.flush()

    name = FormField(form_id=form.id, key='name', label='Name', type='TEXT', order=1)
    topic = FormField(form_id=form.id, key='topic', label='Topic', type='SINGLE_SELECT', order=2)
    db_session.add_all([name, topic])
    db_session.flush()

    lead_a = Lead(event_id=event.id, form_id=form.id, created_at=datetime(2025, 1, 21, 10, 0))
    lead_b = Lead(event_id=event.id, form_id=form.id, created_at=datetime(2025, 1, 22, 15, 0))
    db_session.add_all([lead_a, lead_b])
    db_session.flush()

    db_session.add_all([
        LeadFieldValue(lead_id=lead_a.id, field_id=name.id, value='Anna'),
        LeadFieldValue(lead_id=lead_a.id, field_id=topic.id, value='Facades'),
        LeadFieldValue(lead_id=lead_b.id, field_id=topic.id, value=None),
    ])
    db_session.commit()
    return event


# ── Record factories ─────────────────────────────────────────────────────────

@pytest.fixture
def make_event():
    """Factory fixture — EventRecord with sensible defaults."""
    def _make(**overrides):
        defaults = dict(id=1, name='Trade Show 2025', start_date=None, end_date=None)
        defaults.update(overrides)
        return EventRecord(**defaults)
    return _make


@pytest.fixture
def make_form():
    ids = itertools.count(1)

    def _make(**overrides):
        form_id = overrides.pop('id', None) or next(ids)
        defaults = dict(id=form_id, name=f'Form {form_id}')
        defaults.update(overrides)
        return FormRecord(**defaults)
    return _make


@pytest.fixture
def make_field():
    ids = itertools.count(100)

    def _make(form_id, type='TEXT', **overrides):
        field_id = overrides.pop('id', None) or next(ids)
        defaults = dict(
            id=field_id,
            form_id=form_id,
            key=f'field_{field_id}',
            label=f'Field {field_id}',
            type=type,
            order=field_id,
        )
        defaults.update(overrides)
        return FieldRecord(**defaults)
    return _make


@pytest.fixture
def make_lead():
    ids = itertools.count(1000)

    def _make(form_id=1, created_at=None, **overrides):
        lead_id = overrides.pop('id', None) or next(ids)
        return LeadRecord(
            id=lead_id,
            form_id=form_id,
            created_at=created_at or datetime(2025, 3, 10, 10, 30),
        )
    return _make


@pytest.fixture
def make_value():
    ids = itertools.count(10000)

    def _make(lead_id, field_id, value):
        return FieldValueRecord(id=next(ids), lead_id=lead_id, field_id=field_id, value=value)
    return _make
