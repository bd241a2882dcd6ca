"""
Activity Log Service - append-only audit trail of inventory changes

Entries are written best-effort: a failed or unauthenticated write is logged
and dropped so it never blocks the action that triggered it. Reads pull the
whole collection and filter, sort and paginate in memory.
"""

from typing import Dict, Any, List, Optional, Union, Callable, Awaitable
from datetime import datetime, timezone
import asyncio
import logging
import math

from ..core.config import settings
from ..core.exceptions import StoreUnavailableError
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS
from ..models.database_models import ActorContext, ActivityLogEntry, ActivityLogFilters

logger = logging.getLogger(__name__)


def _constraint(value: Optional[str]) -> Optional[str]:
    """Lower-cased filter value, or None when the filter is empty or 'all'."""
    if value is None:
        return None
    value = str(value).strip().lower()
    if not value or value == 'all':
        return None
    return value


def _lower(value: Any) -> Optional[str]:
    return str(value).lower() if value is not None else None


def matches_filters(entry: Dict[str, Any], filters: ActivityLogFilters) -> bool:
    """Conjunction of the type, role and free-text filters."""
    type_value = _constraint(filters.type)
    if type_value is not None and _lower(entry.get('action')) != type_value:
        return False

    role_value = _constraint(filters.role)
    if role_value is not None and _lower(entry.get('role')) != role_value:
        return False

    # 'all' is a legitimate search term, so only emptiness disables it
    search = (filters.search_text or '').strip().lower()
    if search:
        haystacks = (entry.get('details'), entry.get('userName'), entry.get('email'))
        if not any(search in text.lower() for text in haystacks if isinstance(text, str)):
            return False

    return True


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def sort_newest_first(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Newest first; entries without a usable timestamp go last in fetch order."""
    stamped = [e for e in entries if isinstance(e.get('timestamp'), datetime)]
    unstamped = [e for e in entries if not isinstance(e.get('timestamp'), datetime)]
    stamped.sort(key=lambda e: _as_aware(e['timestamp']), reverse=True)
    return stamped + unstamped


def format_timestamp(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Relative time for recent entries, absolute date otherwise."""
    if not isinstance(timestamp, datetime):
        return 'Unknown time'

    timestamp = _as_aware(timestamp)
    now = _as_aware(now) if now else datetime.now(timezone.utc)
    minutes = math.floor((now - timestamp).total_seconds() / 60)

    if minutes < 1:
        return 'Just now'
    if minutes < 60:
        return f"{minutes} minutes ago"

    hours = minutes // 60
    if hours < 24:
        return f"{hours} hours ago"

    return f"{timestamp.strftime('%b')} {timestamp.day}, {timestamp.year}, {timestamp.strftime('%I:%M %p')}"


class ActivityLogService:
    def __init__(self):
        self.db = database_service

    async def log_activity(
        self,
        actor: Optional[ActorContext],
        action: str,
        data: Union[str, Dict[str, Any]]
    ) -> Optional[str]:
        """
        Append one audit entry and return its id.

        `data` is either the details text or a mapping with 'details',
        'type' and 'references'. Returns None instead of raising when there
        is no actor or the write fails.
        """
        if actor is None:
            logger.warning(f"[ActivityLog] Cannot log '{action}': user not authenticated")
            return None

        try:
            if isinstance(data, str):
                details, log_type, references = data, None, None
            else:
                details = data.get('details')
                log_type = data.get('type')
                references = data.get('references')

            entry = ActivityLogEntry(
                user_id=actor.uid,
                user_name=actor.user_name,
                email=actor.email,
                role=actor.role or '',
                action=action,
                details=details,
                type=log_type or 'general',
                references=references or {},
                device_info=actor.device_info,
            )
            payload = entry.model_dump(by_alias=True, exclude={'id', 'timestamp'})
            payload['timestamp'] = self.db.server_timestamp()

            success, log_id, error = await self.db.create_document(
                COLLECTIONS['activity_logs'],
                payload,
                validate=False
            )
            if not success:
                logger.error(f"[ActivityLog] Failed to write '{action}': {error}")
                return None
            return log_id

        except Exception as e:
            logger.error(f"[ActivityLog] Error logging activity '{action}': {e}")
            return None

    async def query(self, filters: Optional[ActivityLogFilters] = None) -> List[Dict[str, Any]]:
        """Entries matching every given filter, newest first."""
        filters = filters or ActivityLogFilters()

        success, entries, error = await self.db.query_documents(COLLECTIONS['activity_logs'])
        if not success:
            raise StoreUnavailableError(f"Failed to load activity logs: {error}")

        matched = [entry for entry in entries if matches_filters(entry, filters)]
        return sort_newest_first(matched)

    async def query_page(
        self,
        filters: Optional[ActivityLogFilters] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> Dict[str, Any]:
        page_size = page_size or settings.ACTIVITY_LOG_PAGE_SIZE
        page_size = max(1, min(page_size, settings.ACTIVITY_LOG_MAX_PAGE_SIZE))
        page = max(1, page)

        entries = await self.query(filters)
        total = len(entries)
        start = (page - 1) * page_size

        return {
            'items': entries[start:start + page_size],
            'total': total,
            'page': page,
            'page_size': page_size,
            'total_pages': math.ceil(total / page_size) if total else 0,
        }


class SearchDebouncer:
    """Run an async callback once input has been quiet for `wait_ms`."""

    def __init__(self, callback: Callable[..., Awaitable[Any]], wait_ms: Optional[int] = None):
        self._callback = callback
        self.wait_seconds = (settings.SEARCH_DEBOUNCE_MS if wait_ms is None else wait_ms) / 1000
        self._pending: Optional[asyncio.Task] = None

    def submit(self, *args, **kwargs) -> asyncio.Task:
        """Schedule the callback, replacing any call still waiting out the quiet period."""
        self.cancel()
        self._pending = asyncio.ensure_future(self._run(args, kwargs))
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _run(self, args, kwargs):
        await asyncio.sleep(self.wait_seconds)
        return await self._callback(*args, **kwargs)


class ActivityLogView:
    """
    Filter state of one activity log viewer.

    Type and role changes re-query at once; search text is debounced.
    `results` holds the latest completed query.
    """

    def __init__(self, service: Optional['ActivityLogService'] = None, wait_ms: Optional[int] = None):
        self.service = service or activity_log_service
        self.filters = ActivityLogFilters()
        self.results: List[Dict[str, Any]] = []
        self._debouncer = SearchDebouncer(self.refresh, wait_ms)

    async def refresh(self) -> List[Dict[str, Any]]:
        self.results = await self.service.query(self.filters)
        return self.results

    async def set_type(self, value: Optional[str]) -> List[Dict[str, Any]]:
        self.filters.type = value
        self._debouncer.cancel()
        return await self.refresh()

    async def set_role(self, value: Optional[str]) -> List[Dict[str, Any]]:
        self.filters.role = value
        self._debouncer.cancel()
        return await self.refresh()

    def set_search_text(self, value: Optional[str]) -> asyncio.Task:
        self.filters.search_text = value
        return self._debouncer.submit()


activity_log_service = ActivityLogService()
