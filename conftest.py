import copy
from datetime import datetime, timezone

import pytest

from room_inventory.database.database_service import VERSION_CONFLICT, DOCUMENT_NOT_FOUND
from room_inventory.models.database_models import ActorContext


class FakeDB:
    """In-memory stand-in for DatabaseService, keyed by collection path"""

    def __init__(self):
        self.collections = {}
        self.doc_counter = 0
        self.failing_deletes = set()
        self.injected_conflicts = 0
        self.fail_queries = False

    def _get_next_id(self):
        self.doc_counter += 1
        return f"doc_{self.doc_counter}"

    def _out(self, doc_id, data):
        doc = copy.deepcopy(data)
        doc['_doc_id'] = doc_id
        doc.setdefault('id', doc_id)
        return doc

    def seed(self, collection, doc_id, data):
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def stored(self, collection, doc_id):
        return self.collections.get(collection, {}).get(doc_id)

    def server_timestamp(self):
        return datetime.now(timezone.utc)

    async def get_document(self, collection, doc_id):
        doc = self.stored(collection, doc_id)
        if doc is None:
            return True, None, None
        return True, self._out(doc_id, doc), None

    async def query_documents(self, collection, filters=None, order_by=None, limit=None):
        if self.fail_queries:
            return False, [], "firestore unavailable"

        docs = [self._out(doc_id, data) for doc_id, data in self.collections.get(collection, {}).items()]
        for field, op, value in filters or []:
            if op == '==':
                docs = [d for d in docs if d.get(field) == value]
            elif op == '!=':
                docs = [d for d in docs if d.get(field) != value]
        for field, direction in reversed(order_by or []):
            docs.sort(key=lambda d: d.get(field), reverse=direction == 'desc')
        if limit:
            docs = docs[:limit]
        return True, docs, None

    async def create_document(self, collection, data, document_id=None, validate=True):
        doc_id = document_id or self._get_next_id()
        self.seed(collection, doc_id, data)
        return True, doc_id, None

    async def update_document(self, collection, doc_id, data, validate=False):
        doc = self.stored(collection, doc_id)
        if doc is None:
            return False, DOCUMENT_NOT_FOUND
        doc.update(copy.deepcopy(data))
        return True, None

    async def update_document_if_version(self, collection, doc_id, data, expected_version, version_field='records_version'):
        doc = self.stored(collection, doc_id)
        if doc is None:
            return False, DOCUMENT_NOT_FOUND
        if self.injected_conflicts:
            # Another session wrote between our read and our write
            self.injected_conflicts -= 1
            doc[version_field] = (doc.get(version_field) or 0) + 1
            return False, VERSION_CONFLICT
        current = doc.get(version_field) or 0
        if current != expected_version:
            return False, VERSION_CONFLICT
        doc.update(copy.deepcopy(data))
        doc[version_field] = current + 1
        return True, None

    async def delete_document(self, collection, doc_id):
        if (collection, doc_id) in self.failing_deletes:
            return False, "permission denied"
        self.collections.get(collection, {}).pop(doc_id, None)
        return True, None

    async def list_document_ids(self, collection):
        return True, list(self.collections.get(collection, {}).keys()), None


@pytest.fixture
def fake_db(monkeypatch):
    from room_inventory.services import user_profile_service as profile_module
    from room_inventory.services.activity_log_service import activity_log_service
    from room_inventory.services.floor_service import floor_service
    from room_inventory.services.room_service import room_service
    from room_inventory.services.equipment_service import equipment_service
    from room_inventory.services.dashboard_service import dashboard_service
    from room_inventory.services.embedded_record_service import (
        maintenance_record_service,
        replacement_record_service,
    )

    db = FakeDB()
    for service in (
        activity_log_service,
        floor_service,
        room_service,
        equipment_service,
        dashboard_service,
        maintenance_record_service,
        replacement_record_service,
    ):
        monkeypatch.setattr(service, "db", db)
    monkeypatch.setattr(profile_module, "database_service", db)
    return db


@pytest.fixture
def actor():
    return ActorContext(
        uid="admin_uid",
        email="admin@maryknoll.edu",
        display_name="Admin User",
        username="admin",
        role="admin",
        device_info={"userAgent": "pytest", "platform": "linux"},
    )


def seed_room(db, room_id, floor, number=None, name=None, maintenance=None, replacements=None):
    db.seed('rooms', room_id, {
        'id': room_id,
        'floor': floor,
        'number': number or room_id.split('-')[-1],
        'name': name or f"Room {room_id}",
        'equipment': [],
        'maintenance': maintenance or [],
        'replacements': replacements or [],
    })


def seed_equipment(db, room_id, doc_id, quantity, owner=None, floor=None):
    db.seed(f"rooms/{room_id}/equipment", doc_id, {
        'name': f"Item {doc_id}",
        'quantity': quantity,
        'condition': 'Good',
        'status': 'Available',
        'notes': '',
        'roomId': owner or room_id,
        'floor': floor,
    })
