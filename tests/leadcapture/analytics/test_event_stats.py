"""Tests for leadcapture.analytics.event_stats — today / last 7 days / trend counts."""
import logging
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from leadcapture.analytics.event_stats import (
    CountWindow,
    LeadCounts,
    compute_event_stats,
    compute_events_overview,
    resolve_trend_days,
)

NOW = datetime(2025, 3, 14, 15, 0)


@pytest.fixture
def stats_snapshot(make_event, make_form, make_lead):
    """Two forms plus a template, leads spread around the reference day."""
    event = make_event(id=1, name='Expo', start_date=date(2025, 3, 10), end_date=date(2025, 3, 16))
    forms = [
        make_form(id=1, name='Booth', status='ACTIVE'),
        make_form(id=2, name='Workshop', status='DRAFT'),
        make_form(id=3, name='Template', is_template=True),
    ]
    leads = [
        make_lead(form_id=1, created_at=datetime(2025, 3, 14, 0, 0)),
        make_lead(form_id=1, created_at=datetime(2025, 3, 13, 23, 59, 59)),
        make_lead(form_id=1, created_at=datetime(2025, 3, 8, 0, 0)),
        make_lead(form_id=1, created_at=datetime(2025, 3, 7, 23, 59)),
        make_lead(form_id=1, created_at=datetime(2025, 1, 1, 12, 0)),
        make_lead(form_id=1, created_at=datetime(2025, 3, 15, 10, 0)),
        make_lead(form_id=2, created_at=datetime(2025, 3, 14, 9, 0)),
        make_lead(form_id=None, created_at=datetime(2025, 3, 14, 9, 30)),
        make_lead(form_id=3, created_at=datetime(2025, 3, 14, 10, 0)),
    ]
    return dict(event=event, forms=forms, leads=leads)


def _counts(stats):
    return {f.form_id: (f.counts.total, f.counts.today, f.counts.last_7_days) for f in stats.by_form}


# ---------------------------------------------------------------------------
# resolve_trend_days
# ---------------------------------------------------------------------------

class TestResolveTrendDays:

    @pytest.mark.parametrize('days,expected', [
        (None, 30), ('', 30), (7, 7), ('7', 7), ('14days', 14), (1, 1), (365, 365),
    ])
    def test_accepted_values(self, days, expected):
        assert resolve_trend_days(days) == expected

    @pytest.mark.parametrize('days', [0, -5, 366, '0', '400', 'abc', True])
    def test_out_of_range_uses_default(self, days, caplog):
        with caplog.at_level(logging.WARNING, logger='analytics.event_stats'):
            assert resolve_trend_days(days) == 30
        assert 'trend window' in caplog.text


# ---------------------------------------------------------------------------
# CountWindow
# ---------------------------------------------------------------------------

class TestCountWindow:

    def test_bounds_are_local_midnights(self):
        window = CountWindow.ending(NOW, timezone.utc, trend_days=30)
        assert window.start_of_today == datetime(2025, 3, 14, 0, 0)
        assert window.recent_start == datetime(2025, 3, 8, 0, 0)
        assert window.trend_start == datetime(2025, 2, 13, 0, 0)

    def test_aware_now_uses_zone_day(self):
        now = datetime(2025, 3, 14, 23, 30, tzinfo=timezone.utc)
        window = CountWindow.ending(now, ZoneInfo('Europe/Berlin'), trend_days=1)
        assert window.start_of_today == datetime(2025, 3, 15, 0, 0)
        assert window.trend_start == window.start_of_today


# ---------------------------------------------------------------------------
# compute_event_stats
# ---------------------------------------------------------------------------

class TestComputeEventStats:

    def test_per_form_counts(self, stats_snapshot):
        stats = compute_event_stats(**stats_snapshot, now=NOW, tz='UTC')
        assert _counts(stats) == {1: (6, 2, 4), 2: (1, 1, 1)}

    def test_today_starts_at_local_midnight(self, make_event, make_form, make_lead):
        leads = [
            make_lead(form_id=1, created_at=datetime(2025, 3, 13, 23, 59, 59)),
            make_lead(form_id=1, created_at=datetime(2025, 3, 14, 0, 0)),
        ]
        stats = compute_event_stats(make_event(), [make_form(id=1)], leads, now=NOW, tz='UTC')
        assert stats.totals.today == 1

    def test_last_7_days_includes_today(self, make_event, make_form, make_lead):
        leads = [
            make_lead(form_id=1, created_at=datetime(2025, 3, 7, 23, 59, 59)),
            make_lead(form_id=1, created_at=datetime(2025, 3, 8, 0, 0)),
            make_lead(form_id=1, created_at=datetime(2025, 3, 14, 14, 0)),
        ]
        stats = compute_event_stats(make_event(), [make_form(id=1)], leads, now=NOW, tz='UTC')
        assert stats.totals.last_7_days == 2
        assert stats.totals.total == 3

    def test_totals_sum_forms(self, stats_snapshot):
        stats = compute_event_stats(**stats_snapshot, now=NOW, tz='UTC')
        assert stats.totals == LeadCounts(total=7, today=3, last_7_days=5)

    def test_unscoped_and_template_leads_not_counted(self, stats_snapshot):
        stats = compute_event_stats(**stats_snapshot, now=NOW, tz='UTC')
        assert [f.form_id for f in stats.by_form] == [1, 2]
        assert stats.totals.total == 7

    def test_trend_by_day(self, stats_snapshot):
        stats = compute_event_stats(**stats_snapshot, now=NOW, tz='UTC')
        assert [(d.date, d.lead_count) for d in stats.by_day] == [
            ('2025-03-07', 1), ('2025-03-08', 1), ('2025-03-13', 1), ('2025-03-14', 2), ('2025-03-15', 1),
        ]

    def test_trend_window_length(self, stats_snapshot):
        stats = compute_event_stats(**stats_snapshot, now=NOW, days=1, tz='UTC')
        assert stats.trend_days == 1
        assert [d.date for d in stats.by_day] == ['2025-03-14', '2025-03-15']

    def test_invalid_days_falls_back_to_default(self, stats_snapshot):
        stats = compute_event_stats(**stats_snapshot, now=NOW, days='999', tz='UTC')
        assert stats.trend_days == 30
        assert '2025-03-07' in [d.date for d in stats.by_day]

    def test_aware_timestamps_use_zone(self, make_event, make_form, make_lead):
        now = datetime(2025, 3, 14, 23, 30, tzinfo=timezone.utc)
        leads = [
            make_lead(form_id=1, created_at=datetime(2025, 3, 14, 22, 0, tzinfo=timezone.utc)),
            make_lead(form_id=1, created_at=datetime(2025, 3, 14, 23, 15, tzinfo=timezone.utc)),
        ]
        stats = compute_event_stats(make_event(), [make_form(id=1)], leads, now=now, tz='Europe/Berlin')
        assert stats.totals.today == 1
        assert [d.date for d in stats.by_day] == ['2025-03-14', '2025-03-15']

    def test_event_without_forms(self, make_event, make_lead):
        stats = compute_event_stats(make_event(), [], [make_lead(form_id=None)], now=NOW)
        assert stats.by_form == ()
        assert stats.totals == LeadCounts()
        assert stats.by_day == ()

    def test_to_dict(self, stats_snapshot):
        data = compute_event_stats(**stats_snapshot, now=NOW, tz='UTC').to_dict()
        assert data['event'] == {'id': 1, 'name': 'Expo', 'startDate': '2025-03-10', 'endDate': '2025-03-16'}
        assert data['totals'] == {'leadCountTotal': 7, 'leadCountToday': 3, 'leadCountLast7Days': 5}
        assert data['byForm'][1] == {
            'formId': 2, 'formName': 'Workshop', 'status': 'DRAFT',
            'leadCountTotal': 1, 'leadCountToday': 1, 'leadCountLast7Days': 1,
        }
        assert data['byDay'][0] == {'date': '2025-03-07', 'leadCount': 1}


# ---------------------------------------------------------------------------
# compute_events_overview
# ---------------------------------------------------------------------------

class TestComputeEventsOverview:

    def test_counts_per_event(self, make_event, make_form, make_lead):
        events = [make_event(id=1, name='A'), make_event(id=2, name='B')]
        forms = [
            make_form(id=10, event_id=1),
            make_form(id=11, event_id=1),
            make_form(id=20, event_id=2),
            make_form(id=30, event_id=None, is_template=True),
            make_form(id=40, event_id=99),
        ]
        leads = [
            make_lead(form_id=10, created_at=datetime(2025, 3, 14, 8, 0)),
            make_lead(form_id=11, created_at=datetime(2025, 3, 1, 8, 0)),
            make_lead(form_id=20, created_at=datetime(2025, 3, 10, 8, 0)),
            make_lead(form_id=30, created_at=datetime(2025, 3, 14, 8, 0)),
            make_lead(form_id=40, created_at=datetime(2025, 3, 14, 8, 0)),
            make_lead(form_id=None, created_at=datetime(2025, 3, 14, 8, 0)),
        ]
        overview = {o.event_id: o for o in compute_events_overview(events, forms, leads, now=NOW, tz='UTC')}
        assert overview[1].form_count == 2
        assert overview[1].counts == LeadCounts(total=2, today=1, last_7_days=1)
        assert overview[2].form_count == 1
        assert overview[2].counts == LeadCounts(total=1, today=0, last_7_days=1)

    def test_newest_first_undated_on_top(self, make_event):
        events = [
            make_event(id=1, name='Old', start_date=date(2024, 5, 1)),
            make_event(id=2, name='New', start_date=datetime(2025, 5, 1, 9, 0)),
            make_event(id=3, name='Undated'),
        ]
        overview = compute_events_overview(events, [], [], now=NOW)
        assert [o.event_name for o in overview] == ['Undated', 'New', 'Old']

    def test_event_without_forms_reports_zeros(self, make_event):
        overview = compute_events_overview([make_event(id=5)], [], [], now=NOW)
        assert overview[0].to_dict() == {
            'id': 5, 'name': 'Trade Show 2025', 'startDate': None, 'endDate': None, 'formCount': 0,
            'leadCountTotal': 0, 'leadCountToday': 0, 'leadCountLast7Days': 0,
        }
