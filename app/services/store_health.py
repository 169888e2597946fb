"""
Assignment store health / fallback detection

When the assignments table is missing the layout falls back to heuristic
defaults in read-only mode. The "unavailable" classification is cached per
organization+vertical so every load does not repeat a failing round-trip;
only an explicit retry clears it.
"""

from dataclasses import dataclass, field
from typing import Protocol

from app.assignment_store.protocol import AssignmentStoreProtocol
from app.core.exceptions import StoreUnavailableError
from app.core.logging import get_logger, metrics_counter
from app.schemas.department_layout import PersistedAssignment

logger = get_logger(__name__)

FALLBACK_WARNING = (
    "Database table not found. Drag-and-drop is disabled. Using default department layout."
)
CACHED_FALLBACK_WARNING = (
    'Database table is missing. If the migration was applied, use "Check Again".'
)


def fallback_cache_key(organization_id: str, vertical_id: str) -> str:
    return f"dept_table_missing:{organization_id}:{vertical_id}"


class StoreHealthCache(Protocol):
    """Key/value cache for store availability flags"""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def clear(self, key: str) -> None:
        ...


class InMemoryStoreHealthCache:
    """프로세스 로컬 캐시 (명시적 clear 전까지 유지)"""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def clear(self, key: str) -> None:
        self._values.pop(key, None)


@dataclass
class LoadResult:
    assignments: list[PersistedAssignment] = field(default_factory=list)
    fallback_mode: bool = False
    warning: str | None = None


class StoreHealthDetector:
    """Loads assignments and classifies store-unavailable failures"""

    def __init__(
        self,
        store: AssignmentStoreProtocol,
        cache: StoreHealthCache | None = None,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else InMemoryStoreHealthCache()

    def is_unavailable(self, organization_id: str, vertical_id: str) -> bool:
        return self.cache.get(fallback_cache_key(organization_id, vertical_id)) is not None

    async def load(self, organization_id: str, vertical_id: str) -> LoadResult:
        """
        Fetch assignments, or fall back to an empty set

        Raises:
            TransientFailureError: Store failed for a reason other than a
                missing table (not cached, caller decides)
        """
        key = fallback_cache_key(organization_id, vertical_id)
        if self.cache.get(key) is not None:
            logger.info(
                "assignment_store_unavailable_cached",
                organization_id=organization_id,
                vertical_id=vertical_id,
            )
            return LoadResult(fallback_mode=True, warning=CACHED_FALLBACK_WARNING)

        try:
            assignments = await self.store.list_assignments(organization_id, vertical_id)
        except StoreUnavailableError as exc:
            self.cache.set(key, "true")
            metrics_counter(
                "layout_fallback_entered",
                organization_id=organization_id,
                vertical_id=vertical_id,
            )
            logger.warning(
                "layout_fallback_mode_entered",
                organization_id=organization_id,
                vertical_id=vertical_id,
                error=str(exc),
            )
            return LoadResult(fallback_mode=True, warning=FALLBACK_WARNING)

        return LoadResult(assignments=assignments)

    async def retry(self, organization_id: str, vertical_id: str) -> LoadResult:
        """Forget the cached classification and try the store again"""

        logger.info(
            "assignment_store_retry_requested",
            organization_id=organization_id,
            vertical_id=vertical_id,
        )
        self.cache.clear(fallback_cache_key(organization_id, vertical_id))
        return await self.load(organization_id, vertical_id)
