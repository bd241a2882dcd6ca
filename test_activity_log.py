import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from room_inventory.models.database_models import ActorContext, ActivityLogFilters
from room_inventory.services.activity_log_service import (
    activity_log_service,
    ActivityLogView,
    format_timestamp,
)

pytestmark = pytest.mark.asyncio

BASE = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def seed_logs(db):
    rows = [
        ('l1', 'add', 'admin', 'Added equipment Projector to room 1-101', 'Ana', 'ana@school.edu', 1),
        ('l2', 'delete', 'admin', 'Deleted room 101 and all associated records', 'Ana', 'ana@school.edu', 2),
        ('l3', 'update', 'faculty', 'Updated details for room 205', 'Ben', 'ben@school.edu', 3),
        ('l4', 'DELETE', 'Faculty', 'Deleted equipment eq9 from Room 2-205', 'Ben', 'ben@school.edu', 4),
        ('l5', 'add', 'faculty', 'Added room Library (301) on Floor 3', 'Cara', 'cara@school.edu', None),
    ]
    for log_id, action, role, details, name, email, minutes in rows:
        db.seed('activityLogs', log_id, {
            'userId': f"uid_{name.lower()}",
            'userName': name,
            'email': email,
            'role': role,
            'action': action,
            'details': details,
            'type': 'general',
            'references': {},
            'timestamp': BASE + timedelta(minutes=minutes) if minutes is not None else None,
        })


async def test_type_filter_matches_action_case_insensitively_regardless_of_role(fake_db):
    seed_logs(fake_db)

    entries = await activity_log_service.query(ActivityLogFilters(type="delete"))

    assert [e['id'] for e in entries] == ['l4', 'l2']


async def test_filters_combine_as_conjunction(fake_db):
    seed_logs(fake_db)

    entries = await activity_log_service.query(ActivityLogFilters(type="add", role="FACULTY"))

    assert [e['id'] for e in entries] == ['l5']


async def test_search_matches_details_name_or_email(fake_db):
    seed_logs(fake_db)

    by_details = await activity_log_service.query(ActivityLogFilters(search_text="PROJECTOR"))
    by_name = await activity_log_service.query(ActivityLogFilters(search_text="cara"))
    by_email = await activity_log_service.query(ActivityLogFilters(search_text="ben@"))

    assert [e['id'] for e in by_details] == ['l1']
    assert [e['id'] for e in by_name] == ['l5']
    assert [e['id'] for e in by_email] == ['l4', 'l3']


async def test_all_and_empty_values_mean_no_constraint(fake_db):
    seed_logs(fake_db)

    entries = await activity_log_service.query(ActivityLogFilters(type="all", role="", search_text=""))

    assert len(entries) == 5


async def test_newest_first_with_untimestamped_entries_last(fake_db):
    seed_logs(fake_db)

    entries = await activity_log_service.query()

    assert [e['id'] for e in entries] == ['l4', 'l3', 'l2', 'l1', 'l5']


async def test_query_page_slices_sorted_results(fake_db):
    seed_logs(fake_db)

    page = await activity_log_service.query_page(page=2, page_size=2)

    assert [e['id'] for e in page['items']] == ['l2', 'l1']
    assert page['total'] == 5
    assert page['total_pages'] == 3


async def test_log_activity_records_actor_and_defaults(fake_db, actor):
    log_id = await activity_log_service.log_activity(actor, 'add_room', "Added room Lab (101) on Floor 1")

    entry = fake_db.stored('activityLogs', log_id)
    assert entry['userId'] == 'admin_uid'
    assert entry['userName'] == 'admin'
    assert entry['email'] == 'admin@maryknoll.edu'
    assert entry['role'] == 'admin'
    assert entry['type'] == 'general'
    assert entry['references'] == {}
    assert entry['deviceInfo'] == {'userAgent': 'pytest', 'platform': 'linux'}
    assert isinstance(entry['timestamp'], datetime)


async def test_user_name_falls_back_to_display_name_then_email(fake_db):
    named = ActorContext(uid='u1', email='x@school.edu', display_name='Xavier')
    bare = ActorContext(uid='u2', email='y@school.edu')

    first = await activity_log_service.log_activity(named, 'add', 'one')
    second = await activity_log_service.log_activity(bare, 'add', 'two')

    assert fake_db.stored('activityLogs', first)['userName'] == 'Xavier'
    assert fake_db.stored('activityLogs', second)['userName'] == 'y@school.edu'


async def test_log_activity_without_actor_is_a_no_op(fake_db):
    result = await activity_log_service.log_activity(None, 'delete', 'Deleted room 101')

    assert result is None
    assert 'activityLogs' not in fake_db.collections


async def test_log_activity_swallows_store_errors(fake_db, actor, monkeypatch):
    async def broken_create(*args, **kwargs):
        raise RuntimeError("network down")

    monkeypatch.setattr(fake_db, "create_document", broken_create)

    assert await activity_log_service.log_activity(actor, 'add', 'anything') is None


def test_format_timestamp_buckets():
    now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    assert format_timestamp(None) == 'Unknown time'
    assert format_timestamp(now - timedelta(seconds=20), now) == 'Just now'
    assert format_timestamp(now - timedelta(minutes=5), now) == '5 minutes ago'
    assert format_timestamp(now - timedelta(hours=3), now) == '3 hours ago'
    assert format_timestamp(datetime(2025, 2, 3, 14, 5, tzinfo=timezone.utc), now) == 'Feb 3, 2025, 02:05 PM'


class CountingService:
    def __init__(self):
        self.calls = []

    async def query(self, filters):
        self.calls.append((filters.type, filters.search_text))
        return [{'id': 'x'}]


async def test_search_is_debounced_but_type_change_is_immediate():
    service = CountingService()
    view = ActivityLogView(service=service, wait_ms=20)

    first = view.set_search_text("proj")
    second = view.set_search_text("projector")
    results = await second

    assert first.cancelled()
    assert results == [{'id': 'x'}]
    assert service.calls == [(None, "projector")]

    await view.set_type("delete")
    assert service.calls[-1] == ("delete", "projector")
    assert len(service.calls) == 2


async def test_filter_change_cancels_pending_search():
    service = CountingService()
    view = ActivityLogView(service=service, wait_ms=50)

    pending = view.set_search_text("room")
    await view.set_role("admin")
    await asyncio.sleep(0.08)

    assert pending.cancelled()
    assert len(service.calls) == 1
