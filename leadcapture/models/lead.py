"""
Lead + LeadFieldValue models — one row per submission, one value row per
answered field. Values are stored as raw strings whatever the field type.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from leadcapture.database import Base
from leadcapture.analytics.records import FieldValueRecord, LeadRecord


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey('events.id'), nullable=False, index=True)
    form_id = Column(Integer, ForeignKey('forms.id'), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def to_record(self) -> LeadRecord:
        return LeadRecord(id=self.id, form_id=self.form_id, created_at=self.created_at)


class LeadFieldValue(Base):
    __tablename__ = 'lead_field_values'

    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(Integer, ForeignKey('leads.id'), nullable=False, index=True)
    field_id = Column(Integer, ForeignKey('form_fields.id'), nullable=False, index=True)
    value = Column(Text, nullable=True)

    def to_record(self) -> FieldValueRecord:
        return FieldValueRecord(id=self.id, lead_id=self.lead_id, field_id=self.field_id, value=self.value)
