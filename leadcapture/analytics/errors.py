"""
Analytics engine errors.

Only input-contract violations are errors. "No data" states (no forms, no
leads, empty buckets) are represented in the report itself.
"""


class AnalyticsError(Exception):
    """Base class for errors raised by the analytics engine."""


class InvalidFilter(AnalyticsError):
    """An explicit form filter does not belong to the selected event."""

    def __init__(self, form_id, event_id):
        self.form_id = form_id
        self.event_id = event_id
        super().__init__(f"Form {form_id} does not belong to event {event_id}")
