"""
Campsite Availability Sync - Sync Orchestrator Unit Tests

Runs AvailabilitySyncService end to end against in-memory SQLite with a
scripted fetcher:
- Facility filtering (park allow-list, inactive facilities)
- Fetch error isolation and month-scoped downgrades for partial facilities
- Sync run bookkeeping
- Weekend alert hand-off
- Cancellation between parks
"""

import threading
import pytest
from datetime import date
from freezegun import freeze_time
from unittest.mock import Mock

from collector.fetcher import TransientFetchError, MalformedResponseError
from database.repositories.availability_repository import AvailabilityRepository
from database.repositories.run_repository import RunRepository
from models import Park, Site, SyncStatus
from models.availability import NotificationResult
from processor.availability_sync import AvailabilitySyncService, month_starts, month_window
from processor.notifier import AvailabilityNotifier, LoggingNotifier
from tests.conftest import FakeFetcher, make_grid, make_unit, month_dates


NOV = date(2025, 11, 1)
DEC = date(2025, 12, 1)

FACILITIES = [
    {'facility_id': '674', 'name': 'Rolling M. Ranch Campground'},
    {'facility_id': '675', 'name': 'Upper Aliso Group Camp'},
]


def grid_with(*units):
    return make_grid({f"u{i}": unit for i, unit in enumerate(units)})


def weekend_november():
    """Every November night taken except Fri 7 / Sat 8."""
    dates = month_dates(NOV, available=False)
    dates[date(2025, 11, 7)] = True
    dates[date(2025, 11, 8)] = True
    return dates


@pytest.fixture
def notifier():
    notifier = Mock(spec=AvailabilityNotifier)
    notifier.send_availability_alerts.return_value = NotificationResult(sent=1)
    return notifier


def site_numbers(db_session, park_id):
    return sorted(
        (s.facility.external_facility_id, s.site_number)
        for s in db_session.query(Site).filter(Site.park_id == park_id).all()
    )


class TestMonthStarts:

    def test_starts_with_current_month(self):
        assert month_starts(3, today=date(2025, 11, 20)) == [
            date(2025, 11, 1), date(2025, 12, 1), date(2026, 1, 1)
        ]

    @freeze_time("2025-12-31")
    def test_defaults_to_today(self):
        assert month_starts(2) == [date(2025, 12, 1), date(2026, 1, 1)]

    def test_zero_months(self):
        assert month_starts(0, today=date(2025, 11, 20)) == []


class TestMonthWindow:

    def test_covers_whole_month(self):
        assert month_window(date(2025, 11, 1)) == (date(2025, 11, 1), date(2025, 11, 30))

    def test_leap_february(self):
        assert month_window(date(2028, 2, 1)) == (date(2028, 2, 1), date(2028, 2, 29))


@freeze_time("2025-11-05")
class TestSyncPark:

    def test_full_pass_stores_sites_and_alerts(self, db_session, sample_park, notifier):
        fetcher = FakeFetcher(FACILITIES[:1], {
            ('674', NOV): grid_with(make_unit("12", weekend_november(), name="Campsite #12")),
            ('674', DEC): grid_with(make_unit("12", month_dates(DEC, available=False))),
        })
        service = AvailabilitySyncService(db_session, fetcher, notifier, months=2)

        result = service.sync_park(sample_park)

        assert result.status == 'success'
        assert result.facilities_processed == 1
        assert result.sites_processed == 1
        assert result.dates_upserted == 30 + 31
        assert result.errors == []
        assert [c[2] for c in fetcher.grid_calls] == [NOV, DEC]

        site = db_session.query(Site).one()
        stored = AvailabilityRepository(db_session).get_site_dates(site.site_id)
        assert len(stored) == 61
        assert [d for d, available in stored.items() if available] == [date(2025, 11, 7), date(2025, 11, 8)]

        assert result.weekend_sites == 1
        alert = result.alert_sites[0]
        assert alert.site_number == "12"
        assert alert.facility_name == "Rolling M. Ranch Campground"
        assert [p.to_dict() for p in alert.weekend_dates] == [{"fri": "2025-11-07", "sat": "2025-11-08"}]
        notifier.send_availability_alerts.assert_called_once_with(
            sample_park.park_id, "Chino Hills SP", result.alert_sites
        )

        run = RunRepository(db_session).get_by_id(result.run_id)
        assert run.status == SyncStatus.SUCCESS
        assert run.finished_at is not None
        assert run.error_message is None

    def test_no_weekend_means_no_notification(self, db_session, sample_park, notifier):
        fetcher = FakeFetcher(FACILITIES[:1], {
            ('674', NOV): grid_with(make_unit("12", month_dates(NOV, available=False))),
        })

        result = AvailabilitySyncService(db_session, fetcher, notifier, months=1).sync_park(sample_park)

        assert result.alert_sites == []
        notifier.send_availability_alerts.assert_not_called()

    def test_same_site_number_in_two_facilities(self, db_session, sample_park):
        fetcher = FakeFetcher(FACILITIES, {
            ('674', NOV): grid_with(make_unit("12", month_dates(NOV, days=3))),
            ('675', NOV): grid_with(make_unit("12", month_dates(NOV, days=3))),
        })

        result = AvailabilitySyncService(db_session, fetcher, months=1).sync_park(sample_park)

        assert result.sites_processed == 2
        assert site_numbers(db_session, sample_park.park_id) == [('674', '12'), ('675', '12')]

    def test_second_pass_downgrades_vanished_dates(self, db_session, sample_park):
        first = FakeFetcher(FACILITIES[:1], {('674', NOV): grid_with(make_unit("12", weekend_november()))})
        AvailabilitySyncService(db_session, first, months=1).sync_park(sample_park)

        # Fri 7 is no longer listed at all; Sat 8 still free
        dates = weekend_november()
        del dates[date(2025, 11, 7)]
        second = FakeFetcher(FACILITIES[:1], {('674', NOV): grid_with(make_unit("12", dates))})
        result = AvailabilitySyncService(db_session, second, months=1).sync_park(sample_park)

        assert result.dates_downgraded == 1
        site = db_session.query(Site).one()
        stored = AvailabilityRepository(db_session).get_site_dates(site.site_id)
        assert stored[date(2025, 11, 7)] is False
        assert stored[date(2025, 11, 8)] is True

    def test_vanished_date_before_every_remaining_date_is_downgraded(self, db_session, sample_park):
        first = FakeFetcher(FACILITIES[:1], {('674', NOV): grid_with(make_unit("12", {
            date(2025, 11, 7): True,
            date(2025, 11, 8): True,
        }))})
        AvailabilitySyncService(db_session, first, months=1).sync_park(sample_park)

        second = FakeFetcher(FACILITIES[:1], {('674', NOV): grid_with(make_unit("12", {
            date(2025, 11, 8): True,
        }))})
        result = AvailabilitySyncService(db_session, second, months=1).sync_park(sample_park)

        assert result.dates_downgraded == 1
        site = db_session.query(Site).one()
        assert AvailabilityRepository(db_session).get_site_dates(site.site_id) == {
            date(2025, 11, 7): False,
            date(2025, 11, 8): True,
        }

    def test_unit_without_slices_downgrades_whole_month(self, db_session, sample_park, notifier):
        first = FakeFetcher(FACILITIES[:1], {('674', NOV): grid_with(make_unit("12", {
            date(2025, 11, 7): True,
            date(2025, 11, 8): True,
        }))})
        AvailabilitySyncService(db_session, first, months=1).sync_park(sample_park)

        second = FakeFetcher(FACILITIES[:1], {('674', NOV): grid_with(make_unit("12", {}))})
        result = AvailabilitySyncService(db_session, second, notifier, months=1).sync_park(sample_park)

        assert result.dates_downgraded == 2
        assert result.alert_sites == []
        notifier.send_availability_alerts.assert_not_called()
        site = db_session.query(Site).one()
        assert AvailabilityRepository(db_session).get_site_dates(site.site_id) == {
            date(2025, 11, 7): False,
            date(2025, 11, 8): False,
        }


@freeze_time("2025-11-05")
class TestFacilityFiltering:

    def test_park_allow_list_limits_fetches_and_sites(self, db_session, sample_park):
        sample_park.facility_filter = '["674"]'
        db_session.commit()
        fetcher = FakeFetcher(FACILITIES, {
            ('674', NOV): grid_with(make_unit("12", month_dates(NOV, days=2))),
            ('675', NOV): grid_with(make_unit("G1", month_dates(NOV, days=2))),
        })

        AvailabilitySyncService(db_session, fetcher, months=1).sync_park(sample_park)

        assert fetcher.facility_calls == [('627', ['674'])]
        assert {c[1] for c in fetcher.grid_calls} == {'674'}
        assert site_numbers(db_session, sample_park.park_id) == [('674', '12')]

    def test_broken_allow_list_fails_the_park_without_fetching(self, db_session, sample_park):
        sample_park.facility_filter = '674, 675'
        db_session.commit()
        fetcher = FakeFetcher(FACILITIES, {
            ('674', NOV): grid_with(make_unit("12", month_dates(NOV, days=2))),
        })

        result = AvailabilitySyncService(db_session, fetcher, months=1).sync_park(sample_park)

        assert result.status == 'error'
        assert "facility_filter" in result.error_message
        assert fetcher.facility_calls == []
        assert RunRepository(db_session).get_by_id(result.run_id).status == SyncStatus.ERROR

    def test_inactive_facility_is_skipped(self, db_session, sample_park, sample_facilities):
        sample_facilities[1].is_active = False
        db_session.commit()
        fetcher = FakeFetcher(FACILITIES, {
            ('674', NOV): grid_with(make_unit("12", month_dates(NOV, days=2))),
            ('675', NOV): grid_with(make_unit("G1", month_dates(NOV, days=2))),
        })

        AvailabilitySyncService(db_session, fetcher, months=1).sync_park(sample_park)

        assert site_numbers(db_session, sample_park.park_id) == [('674', '12')]

    def test_all_facilities_inactive_skips_park(self, db_session, sample_park, sample_facilities):
        for facility in sample_facilities:
            facility.is_active = False
        db_session.commit()
        fetcher = FakeFetcher(FACILITIES, {})

        result = AvailabilitySyncService(db_session, fetcher, months=1).sync_park(sample_park)

        assert result.status == 'success'
        assert fetcher.facility_calls == []
        assert fetcher.grid_calls == []

    def test_effective_filter_intersects_active_ids_with_allow_list(self, db_session, sample_park, sample_facilities):
        sample_park.facility_filter = '["675", "999"]'
        db_session.commit()
        service = AvailabilitySyncService(db_session, FakeFetcher([], {}))

        assert service.effective_facility_filter(sample_park) == ['675']

    def test_effective_filter_without_facility_rows(self, db_session, sample_park):
        service = AvailabilitySyncService(db_session, FakeFetcher([], {}))

        assert service.effective_facility_filter(sample_park) is None

        sample_park.facility_filter = '["674"]'
        assert service.effective_facility_filter(sample_park) == ['674']


@freeze_time("2025-11-05")
class TestFetchErrors:

    def test_failed_facility_keeps_other_facilities(self, db_session, sample_park):
        fetcher = FakeFetcher(FACILITIES, {
            ('674', NOV): TransientFetchError("HTTP 503"),
            ('675', NOV): grid_with(make_unit("G1", month_dates(NOV, days=2))),
        })

        result = AvailabilitySyncService(db_session, fetcher, months=1).sync_park(sample_park)

        assert result.status == 'success'
        assert [(e.stage, e.key) for e in result.errors] == [('fetch_grid', f"{sample_park.park_id}/674@2025-11")]
        assert site_numbers(db_session, sample_park.park_id) == [('675', 'G1')]

    def test_malformed_grid_is_recorded(self, db_session, sample_park):
        fetcher = FakeFetcher(FACILITIES[:1], {('674', NOV): MalformedResponseError("no Facility.Units")})

        result = AvailabilitySyncService(db_session, fetcher, months=1).sync_park(sample_park)

        assert [e.stage for e in result.errors] == ['fetch_grid']

    def test_partial_facility_downgrades_only_fetched_months(self, db_session, sample_park):
        december = month_dates(DEC, available=False)
        december[date(2025, 12, 6)] = True
        full = FakeFetcher(FACILITIES[:1], {
            ('674', NOV): grid_with(make_unit("12", weekend_november())),
            ('674', DEC): grid_with(make_unit("12", december)),
        })
        AvailabilitySyncService(db_session, full, months=2).sync_park(sample_park)

        # November comes back without the Friday, December fails outright
        dates = weekend_november()
        del dates[date(2025, 11, 7)]
        partial = FakeFetcher(FACILITIES[:1], {
            ('674', NOV): grid_with(make_unit("12", dates)),
            ('674', DEC): TransientFetchError("read timeout"),
        })
        result = AvailabilitySyncService(db_session, partial, months=2).sync_park(sample_park)

        assert result.dates_downgraded == 1
        site = db_session.query(Site).one()
        stored = AvailabilityRepository(db_session).get_site_dates(site.site_id)
        assert stored[date(2025, 11, 7)] is False
        assert stored[date(2025, 12, 6)] is True

    def test_facility_list_failure_for_every_month(self, db_session, sample_park, failing_fetcher):
        result = AvailabilitySyncService(db_session, failing_fetcher, months=2).sync_park(sample_park)

        assert result.status == 'success'
        assert [e.stage for e in result.errors] == ['fetch_facilities', 'fetch_facilities']
        assert result.sites_processed == 0
        failing_fetcher.fetch_facility_grid.assert_not_called()

    def test_unexpected_error_fails_the_park(self, db_session, sample_park):
        fetcher = FakeFetcher(FACILITIES[:1], {('674', NOV): RuntimeError("grid parser exploded")})

        result = AvailabilitySyncService(db_session, fetcher, months=1).sync_park(sample_park)

        assert result.status == 'error'
        assert "grid parser exploded" in result.error_message
        run = RunRepository(db_session).get_by_id(result.run_id)
        assert run.status == SyncStatus.ERROR
        assert "grid parser exploded" in run.error_message

    def test_notifier_failure_does_not_fail_the_park(self, db_session, sample_park):
        notifier = Mock(spec=AvailabilityNotifier)
        notifier.send_availability_alerts.side_effect = RuntimeError("SMTP down")
        fetcher = FakeFetcher(FACILITIES[:1], {('674', NOV): grid_with(make_unit("12", weekend_november()))})

        result = AvailabilitySyncService(db_session, fetcher, notifier, months=1).sync_park(sample_park)

        assert result.status == 'success'
        assert [e.stage for e in result.errors] == ['notify']


@freeze_time("2025-11-05")
class TestCheckNow:

    @pytest.fixture
    def second_park(self, db_session):
        park = Park(name='Anza-Borrego Desert SP', park_number='638', is_active=True)
        db_session.add(park)
        db_session.commit()
        return park

    def test_one_park_failure_does_not_stop_the_next(self, db_session, sample_park, second_park):
        class ExplodingForAnza(FakeFetcher):
            def fetch_park_facilities(self, park_number, facility_filter=None):
                if park_number == '638':
                    raise RuntimeError("unexpected payload")
                return super().fetch_park_facilities(park_number, facility_filter)

        fetcher = ExplodingForAnza(FACILITIES[:1], {
            ('674', NOV): grid_with(make_unit("12", weekend_november())),
        })

        results = AvailabilitySyncService(db_session, fetcher, LoggingNotifier(), months=1).check_now()

        assert [(r.park_name, r.status) for r in results] == [
            ('Anza-Borrego Desert SP', 'error'),
            ('Chino Hills SP', 'success'),
        ]
        assert results[1].notification.sent == 1

    def test_restricted_to_requested_active_parks(self, db_session, sample_park, second_park):
        second_park.is_active = False
        db_session.commit()
        fetcher = FakeFetcher([], {})

        results = AvailabilitySyncService(db_session, fetcher, months=1).check_now(
            [second_park.park_id, sample_park.park_id]
        )

        assert [r.park_id for r in results] == [sample_park.park_id]

    def test_cancelled_before_start_attempts_nothing(self, db_session, sample_park, second_park):
        cancel = threading.Event()
        cancel.set()
        fetcher = FakeFetcher(FACILITIES, {})

        results = AvailabilitySyncService(db_session, fetcher, months=1, cancel_event=cancel).check_now()

        assert results == []
        assert fetcher.facility_calls == []

    def test_cancel_between_parks(self, db_session, sample_park, second_park):
        cancel = threading.Event()

        class CancelAfterFirstPark(FakeFetcher):
            def fetch_park_facilities(self, park_number, facility_filter=None):
                cancel.set()
                return super().fetch_park_facilities(park_number, facility_filter)

        fetcher = CancelAfterFirstPark([], {})

        results = AvailabilitySyncService(db_session, fetcher, months=1, cancel_event=cancel).check_now()

        assert len(results) == 1
        assert results[0].park_name == 'Anza-Borrego Desert SP'

    def test_no_active_parks(self, db_session):
        assert AvailabilitySyncService(db_session, FakeFetcher([], {})).check_now() == []
