"""
Form + FormField models.

A form belongs to one event; forms without an event are templates that get
copied into events and never show up in analytics.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from leadcapture.database import Base
from leadcapture.analytics.records import FieldRecord, FormRecord


class Form(Base):
    __tablename__ = 'forms'

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey('events.id'), nullable=True, index=True)  # NULL = template
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Text, default='DRAFT')
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_record(self) -> FormRecord:
        return FormRecord(
            id=self.id,
            name=self.name,
            is_template=self.event_id is None,
            event_id=self.event_id,
            status=self.status,
        )


class FormField(Base):
    __tablename__ = 'form_fields'
    __table_args__ = (
        UniqueConstraint('form_id', 'key', name='uq_form_field_key'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    form_id = Column(Integer, ForeignKey('forms.id'), nullable=False, index=True)
    key = Column(Text, nullable=False)
    label = Column(Text, nullable=False)
    type = Column(Text, nullable=False, default='TEXT')
    order = Column(Integer, default=0)

    def to_record(self) -> FieldRecord:
        return FieldRecord(
            id=self.id,
            form_id=self.form_id,
            key=self.key,
            label=self.label,
            type=self.type,
            order=self.order or 0,
        )
