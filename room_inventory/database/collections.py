# Collection Names
COLLECTIONS = {
    'floors': 'floors',
    'rooms': 'rooms',
    'users': 'users',
    'activity_logs': 'activityLogs',
}

# Subcollections scoped under a room document
ROOM_SUBCOLLECTIONS = {
    'equipment': 'equipment',
    # Legacy per-room record subcollections; records now live in the room's arrays
    'maintenance': 'maintenance',
    'replacements': 'replacements',
}


def room_subcollection(room_id: str, name: str) -> str:
    """Collection path of a room's subcollection, e.g. rooms/1-101/equipment"""
    return f"{COLLECTIONS['rooms']}/{room_id}/{ROOM_SUBCOLLECTIONS[name]}"


def schema_key(collection_path: str) -> str:
    """Schema key for a collection path; subcollections use their last segment."""
    name = collection_path.rsplit('/', 1)[-1]
    for key, value in COLLECTIONS.items():
        if value == name:
            return key
    return name


# Collection Structure Documentation
COLLECTION_SCHEMAS = {
    'floors': {
        'fields': ['number', 'name', 'createdAt'],
        'required': ['number'],
        'indexes': ['number']
    },
    'rooms': {
        'fields': ['id', 'floor', 'number', 'name', 'equipment', 'maintenance', 'replacements', 'records_version', 'lastModified'],
        'required': ['id', 'floor', 'number'],
        'indexes': ['floor', 'number']
    },
    'equipment': {
        'fields': ['name', 'quantity', 'condition', 'status', 'notes', 'addedAt', 'roomId', 'floor'],
        'required': ['name', 'quantity', 'roomId'],
        'indexes': ['roomId']
    },
    'users': {
        'fields': ['username', 'email', 'role'],
        'required': ['email'],
        'indexes': ['role']
    },
    'activity_logs': {
        'fields': ['userId', 'userName', 'email', 'role', 'action', 'details', 'type', 'references', 'timestamp', 'deviceInfo'],
        'required': ['userId', 'action'],
        'indexes': ['timestamp', 'action', 'role']
    },
}
