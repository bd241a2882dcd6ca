import pytest

from conftest import seed_room, seed_equipment
from room_inventory.core.exceptions import NotFoundError, ConflictError, StoreUnavailableError
from room_inventory.models.database_models import FloorCreate, RoomCreate, RoomUpdate, EquipmentCreate
from room_inventory.services.floor_service import floor_service
from room_inventory.services.room_service import room_service, room_number_key
from room_inventory.services.equipment_service import equipment_service

pytestmark = pytest.mark.asyncio


def actions(db):
    return [entry['action'] for entry in db.collections.get('activityLogs', {}).values()]


async def test_add_floor_uses_number_as_key(fake_db, actor):
    floor = await floor_service.add_floor(actor, FloorCreate(number=2, name="Second"))

    assert floor['id'] == '2'
    assert fake_db.stored('floors', '2')['number'] == 2
    assert actions(fake_db) == ['add_floor']


async def test_add_existing_floor_conflicts(fake_db, actor):
    fake_db.seed('floors', '1', {'number': 1})

    with pytest.raises(ConflictError):
        await floor_service.add_floor(actor, FloorCreate(number=1))


async def test_remove_floor_with_rooms_is_refused(fake_db, actor):
    fake_db.seed('floors', '1', {'number': 1})
    seed_room(fake_db, '1-101', 1)

    with pytest.raises(ConflictError):
        await floor_service.remove_floor(actor, '1')

    assert fake_db.stored('floors', '1') is not None


async def test_remove_empty_floor(fake_db, actor):
    fake_db.seed('floors', '3', {'number': 3})

    await floor_service.remove_floor(actor, '3')

    assert fake_db.stored('floors', '3') is None
    assert actions(fake_db) == ['delete_floor']


async def test_list_floors_in_number_order(fake_db):
    for number in (3, 1, 2):
        fake_db.seed('floors', str(number), {'number': number})

    floors = await floor_service.list_floors()

    assert [f['number'] for f in floors] == [1, 2, 3]


async def test_add_room_requires_existing_floor(fake_db, actor):
    with pytest.raises(NotFoundError):
        await room_service.add_room(actor, RoomCreate(floor="9", number="901", name="Lab"))

    assert 'rooms' not in fake_db.collections


async def test_add_room_derives_id_and_rejects_duplicates(fake_db, actor):
    fake_db.seed('floors', '1', {'number': 1})

    room = await room_service.add_room(actor, RoomCreate(floor=1, number="101", name="Chemistry Lab"))

    assert room['id'] == '1-101'
    stored = fake_db.stored('rooms', '1-101')
    assert stored['floor'] == '1'
    assert stored['maintenance'] == [] and stored['replacements'] == []
    assert actions(fake_db) == ['add_room']

    with pytest.raises(ConflictError):
        await room_service.add_room(actor, RoomCreate(floor="1", number="101", name="Other"))


async def test_update_room_applies_partial_changes(fake_db, actor):
    seed_room(fake_db, '1-101', '1', name="Old Name")

    updated = await room_service.update_room(actor, '1-101', RoomUpdate(name="New Name"))

    assert updated['name'] == "New Name"
    assert fake_db.stored('rooms', '1-101')['number'] == '101'
    assert actions(fake_db) == ['update']


async def test_rooms_for_floor_in_natural_number_order(fake_db):
    for number in ('110', '102', '10A', '9'):
        seed_room(fake_db, f"1-{number}", '1', number=number)
    seed_room(fake_db, '2-201', '2')

    rooms = await room_service.list_rooms_for_floor('1')

    assert [r['number'] for r in rooms] == ['9', '10A', '102', '110']


def test_room_number_key_handles_missing_number():
    assert sorted([{'number': '3'}, {}], key=room_number_key) == [{}, {'number': '3'}]


async def test_delete_room_removes_children_then_room(fake_db, actor):
    seed_room(fake_db, '1-101', '1')
    seed_equipment(fake_db, '1-101', 'eq1', 2)
    seed_equipment(fake_db, '1-101', 'eq2', 1)
    fake_db.seed('rooms/1-101/maintenance', 'm1', {'equipmentName': 'Fan'})

    await room_service.delete_room(actor, '1-101')

    assert fake_db.stored('rooms', '1-101') is None
    assert fake_db.collections['rooms/1-101/equipment'] == {}
    assert fake_db.collections['rooms/1-101/maintenance'] == {}
    assert actions(fake_db) == ['delete']


async def test_failed_child_deletion_keeps_room(fake_db, actor):
    seed_room(fake_db, '1-101', '1')
    seed_equipment(fake_db, '1-101', 'eq1', 2)
    seed_equipment(fake_db, '1-101', 'eq2', 1)
    fake_db.failing_deletes.add(('rooms/1-101/equipment', 'eq2'))

    with pytest.raises(StoreUnavailableError) as exc:
        await room_service.delete_room(actor, '1-101')

    assert "some deletions may have failed" in exc.value.message
    assert fake_db.stored('rooms', '1-101') is not None
    assert fake_db.stored('rooms/1-101/equipment', 'eq1') is None
    assert actions(fake_db) == []


async def test_delete_missing_room_raises_not_found(fake_db, actor):
    with pytest.raises(NotFoundError):
        await room_service.delete_room(actor, '9-999')


async def test_add_equipment_copies_room_floor(fake_db, actor):
    seed_room(fake_db, '2-201', '2')

    item = await equipment_service.add_equipment(actor, '2-201', EquipmentCreate(name="Projector", quantity=2))

    stored = fake_db.stored('rooms/2-201/equipment', item['id'])
    assert stored['roomId'] == '2-201'
    assert stored['floor'] == '2'
    assert stored['quantity'] == 2
    assert stored['condition'] == 'Good'
    assert actions(fake_db) == ['add']


async def test_add_equipment_to_missing_room(fake_db, actor):
    with pytest.raises(NotFoundError):
        await equipment_service.add_equipment(actor, '9-999', EquipmentCreate(name="Fan", quantity=1))


async def test_delete_equipment(fake_db, actor):
    seed_room(fake_db, '2-201', '2')
    seed_equipment(fake_db, '2-201', 'eq1', 1)

    await equipment_service.delete_equipment(actor, '2-201', 'eq1')

    assert fake_db.stored('rooms/2-201/equipment', 'eq1') is None
    assert actions(fake_db) == ['delete_equipment']

    with pytest.raises(NotFoundError):
        await equipment_service.delete_equipment(actor, '2-201', 'eq1')


async def test_add_room_does_not_overwrite_room_with_numeric_floor(fake_db, actor):
    fake_db.seed('floors', '1', {'number': 1})
    seed_room(fake_db, '1-101', 1, name="Physics Lab", maintenance=[{'equipmentName': 'Fan', 'resolved': False}])
    fake_db.stored('rooms', '1-101')['records_version'] = 4

    with pytest.raises(ConflictError):
        await room_service.add_room(actor, RoomCreate(floor="1", number="101", name="Replacement"))

    stored = fake_db.stored('rooms', '1-101')
    assert stored['name'] == "Physics Lab"
    assert len(stored['maintenance']) == 1
    assert stored['records_version'] == 4
    assert actions(fake_db) == []


async def test_add_room_conflicts_with_same_number_under_other_id(fake_db, actor):
    fake_db.seed('floors', '2', {'number': 2})
    seed_room(fake_db, 'legacy-room', 2, number='201')

    with pytest.raises(ConflictError):
        await room_service.add_room(actor, RoomCreate(floor="2", number="201", name="Library"))

    assert fake_db.stored('rooms', '2-201') is None


async def test_renumbering_to_taken_number_is_refused(fake_db, actor):
    seed_room(fake_db, '1-101', '1')
    seed_room(fake_db, '1-102', '1')

    with pytest.raises(ConflictError):
        await room_service.update_room(actor, '1-102', RoomUpdate(number='101'))

    assert fake_db.stored('rooms', '1-102')['number'] == '102'


async def test_renumbering_to_free_number_is_applied(fake_db, actor):
    seed_room(fake_db, '1-101', '1')
    seed_room(fake_db, '2-103', '2')

    updated = await room_service.update_room(actor, '1-101', RoomUpdate(number='103'))

    assert updated['number'] == '103'
    assert fake_db.stored('rooms', '1-101')['number'] == '103'


async def test_keeping_own_number_is_not_a_conflict(fake_db, actor):
    seed_room(fake_db, '1-101', '1')

    updated = await room_service.update_room(actor, '1-101', RoomUpdate(number='101', name="Same Number"))

    assert updated['name'] == "Same Number"


async def test_rooms_by_floor_groups_in_numeric_order(fake_db):
    seed_room(fake_db, '10-1002', '10', number='1002')
    seed_room(fake_db, '2-210', '2', number='210')
    seed_room(fake_db, '2-202', '2', number='202')
    seed_room(fake_db, '1-101', 1)

    grouped = await room_service.rooms_by_floor()

    assert list(grouped) == [1, '2', '10']
    assert [r['number'] for r in grouped['2']] == ['202', '210']


async def test_list_equipment_for_room(fake_db):
    seed_room(fake_db, '2-201', '2')
    seed_equipment(fake_db, '2-201', 'eq1', 1)
    seed_equipment(fake_db, '2-201', 'eq2', 4)
    seed_room(fake_db, '2-202', '2')
    seed_equipment(fake_db, '2-202', 'eq3', 2)

    items = await equipment_service.list_equipment('2-201')

    assert sorted(item['id'] for item in items) == ['eq1', 'eq2']
    with pytest.raises(NotFoundError):
        await equipment_service.list_equipment('9-999')
