"""
Event model — a trade show that forms and leads are captured for.
"""
from sqlalchemy import Column, Integer, Text, Date, DateTime
from sqlalchemy.sql import func

from leadcapture.database import Base
from leadcapture.analytics.records import EventRecord


class Event(Base):
    __tablename__ = 'events'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    location = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_record(self) -> EventRecord:
        return EventRecord(
            id=self.id,
            name=self.name,
            start_date=self.start_date,
            end_date=self.end_date,
        )
