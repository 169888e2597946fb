"""
Department layout change notifications

Typed publish/subscribe owned by the layout service. Navigation and
dashboard views subscribe and re-render from the refreshed merge.
"""

import inspect
from typing import Awaitable, Callable, Literal, Union

from app.core.logging import get_logger
from app.models.section_assignment import SectionId
from app.schemas.base import BaseSchema

logger = get_logger(__name__)

DEPARTMENT_LAYOUT_CHANGED = "department_layout_changed"

LayoutOperation = Literal[
    "move",
    "reorder",
    "undo",
    "toggle_visibility",
    "rename",
    "reset_department",
    "reset",
    "initialize",
]


class DepartmentLayoutChanged(BaseSchema):
    """레이아웃 변경 이벤트 페이로드"""

    event: Literal["department_layout_changed"] = DEPARTMENT_LAYOUT_CHANGED
    organization_id: str
    vertical_id: str
    operation: LayoutOperation
    department_id: str | None = None
    section_id: SectionId | None = None
    affected_rows: int = 0


LayoutListener = Callable[[DepartmentLayoutChanged], Union[None, Awaitable[None]]]


class LayoutEventBus:
    """In-process subscribers for DepartmentLayoutChanged"""

    def __init__(self) -> None:
        self._listeners: list[LayoutListener] = []

    def subscribe(self, listener: LayoutListener) -> Callable[[], None]:
        """
        Register a listener

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def publish(self, event: DepartmentLayoutChanged) -> None:
        logger.info(
            DEPARTMENT_LAYOUT_CHANGED,
            organization_id=event.organization_id,
            vertical_id=event.vertical_id,
            operation=event.operation,
            department_id=event.department_id,
            section_id=event.section_id.value if event.section_id else None,
            affected_rows=event.affected_rows,
            listeners=len(self._listeners),
        )
        # A failing view must not block delivery to the others
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "layout_listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(exc),
                )
