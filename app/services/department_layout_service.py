"""
Department layout service

Owns, per organization and vertical, the local assignment entries, the drag
gesture state, the undo history and the change event bus. Every mutation is
applied optimistically, persisted through the assignment store and then
reconciled by reloading authoritative state. Failures restore the
pre-mutation snapshot.

Interleaved mutations are not serialized: each one reloads after its own
write, so concurrent gestures converge on last-write-wins without a strict
ordering guarantee.
"""

from __future__ import annotations

import asyncio
import enum
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence
from uuid import uuid4

from app.assignment_store.protocol import AssignmentStoreProtocol
from app.core.exceptions import (
    FallbackModeError,
    LayoutException,
    NothingToUndoError,
    RecordNotFoundError,
    TransientFailureError,
    ValidationError,
    ZeroRowsAffectedError,
)
from app.core.logging import get_logger, log_layout_mutation
from app.core.permissions import ensure_can_manage_layout
from app.models.section_assignment import SectionId
from app.schemas.department_layout import (
    AssignmentEntry,
    AssignmentUpsert,
    BulkOrderUpdate,
    DepartmentDefinition,
    GestureStateResponse,
    MergedDepartment,
    MoveAction,
    MutationResult,
    NavigationItem,
    PersistedAssignment,
    SectionedDepartments,
)
from app.schemas.principal import Principal, UserRole
from app.services.department_catalog import get_department_definitions
from app.services.department_merger import (
    default_entry,
    filter_for_viewer,
    merge,
    merge_all,
    section_members,
    to_navigation_items,
)
from app.services.layout_events import (
    DepartmentLayoutChanged,
    LayoutEventBus,
    LayoutOperation,
)
from app.services.section_defaults import DEFAULT_SECTION_DEFAULTS, SectionDefaults
from app.services.store_health import (
    InMemoryStoreHealthCache,
    LoadResult,
    StoreHealthCache,
    StoreHealthDetector,
)
from app.services.undo_stack import PeriodicSweeper, UndoStack

logger = get_logger(__name__)

OutcomeCallback = Callable[[str], None]


class DragState(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"


@dataclass
class OperationOutcome:
    """Result of a layout operation as reported to the caller"""

    success: bool
    message: str
    error: LayoutException | None = None
    affected_rows: int = 0
    changed: bool = False

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass
class _Change:
    message: str
    affected_rows: int = 0
    department_id: str | None = None
    section_id: SectionId | None = None
    changed: bool = True


class DepartmentLayoutService:
    """부서 섹션 배치 엔진 (조직 + 버티컬 단위)"""

    def __init__(
        self,
        organization_id: str,
        vertical_id: str,
        definitions: Sequence[DepartmentDefinition],
        store: AssignmentStoreProtocol,
        *,
        health: StoreHealthDetector | None = None,
        defaults: SectionDefaults = DEFAULT_SECTION_DEFAULTS,
        undo_stack: UndoStack | None = None,
        events: LayoutEventBus | None = None,
        on_success: OutcomeCallback | None = None,
        on_error: OutcomeCallback | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.organization_id = organization_id
        self.vertical_id = vertical_id
        self.definitions = list(definitions)
        self.store = store
        self.health = health or StoreHealthDetector(store)
        self.defaults = defaults
        self.undo_stack = undo_stack or UndoStack(clock=clock)
        self.events = events or LayoutEventBus()
        self.on_success = on_success
        self.on_error = on_error
        self._clock = clock

        self._assignments: list[AssignmentEntry] = []
        self.fallback_mode = False
        self.warning: str | None = None

        self.state = DragState.IDLE
        self.active_id: str | None = None
        self.over_id: str | None = None

    # ==================== Reads ====================

    @property
    def assignments(self) -> list[AssignmentEntry]:
        return list(self._assignments)

    def sections(self) -> SectionedDepartments:
        return merge(self.definitions, self._assignments, self.defaults)

    def all_departments(self) -> list[MergedDepartment]:
        return merge_all(self.definitions, self._assignments, self.defaults)

    def navigation_for(
        self,
        role: UserRole,
        enabled_features: set[str] | None = None,
    ) -> dict[SectionId, list[NavigationItem]]:
        visible = filter_for_viewer(self.sections(), role, enabled_features)
        return {
            section_id: to_navigation_items(departments)
            for section_id, departments in visible.items()
        }

    def get_department(self, department_id: str) -> MergedDepartment:
        for department in self.all_departments():
            if department.id == department_id:
                return department
        raise RecordNotFoundError(f"Department '{department_id}' not found")

    async def load(self) -> LoadResult:
        """
        Replace local entries with the store's state

        Raises:
            TransientFailureError: Store failed for a reason other than a
                missing table
        """
        result = await self.health.load(self.organization_id, self.vertical_id)
        self._apply_load(result)
        return result

    async def retry(self) -> OperationOutcome:
        """Clear the cached fallback classification and reload"""

        try:
            result = await self.health.retry(self.organization_id, self.vertical_id)
        except LayoutException as exc:
            return self._report_failure("retry", exc)

        self._apply_load(result)
        if result.fallback_mode:
            return OperationOutcome(
                success=False,
                message=result.warning or "Assignment store is still unavailable.",
            )
        return self._report_success(
            OperationOutcome(
                success=True,
                message="Department layout storage is available again.",
                changed=True,
            )
        )

    def _apply_load(self, result: LoadResult) -> None:
        self._assignments = list(result.assignments)
        self.fallback_mode = result.fallback_mode
        self.warning = result.warning

    # ==================== Gesture ====================

    def gesture_state(self) -> GestureStateResponse:
        return GestureStateResponse(
            state=self.state.value,
            active_id=self.active_id,
            over_id=self.over_id,
        )

    def drag_start(self, department_id: str) -> GestureStateResponse:
        self.get_department(department_id)
        self.state = DragState.DRAGGING
        self.active_id = department_id
        self.over_id = None
        return self.gesture_state()

    def drag_over(self, over_id: str | None) -> GestureStateResponse:
        if self.state == DragState.DRAGGING:
            self.over_id = over_id
        return self.gesture_state()

    def drag_cancel(self) -> GestureStateResponse:
        """Abandon the gesture; nothing is persisted"""

        self._reset_gesture()
        return self.gesture_state()

    def _reset_gesture(self) -> None:
        self.state = DragState.IDLE
        self.active_id = None
        self.over_id = None

    async def drag_end(
        self,
        department_id: str,
        target_section_id: SectionId,
        target_position: int,
        *,
        actor: Principal,
    ) -> OperationOutcome:
        self.state = DragState.COMMITTING
        self.active_id = department_id
        try:
            return await self._move(department_id, target_section_id, target_position, actor)
        finally:
            self._reset_gesture()

    # ==================== Mutations ====================

    async def move_to_section(
        self,
        department_id: str,
        target_section_id: SectionId,
        *,
        actor: Principal,
    ) -> OperationOutcome:
        """Append a department to the end of another section"""

        orders = [
            department.display_order
            for department in self.all_departments()
            if department.section_id == target_section_id and department.id != department_id
        ]
        position = max(orders) + 1 if orders else 0
        return await self._move(department_id, target_section_id, position, actor)

    async def _move(
        self,
        department_id: str,
        target_section_id: SectionId,
        target_position: int,
        actor: Principal,
    ) -> OperationOutcome:
        async def apply() -> _Change:
            if target_position < 0:
                raise ValidationError("Target position must not be negative")
            department = self.get_department(department_id)
            from_section_id = department.section_id
            from_position = department.display_order

            if from_section_id == target_section_id and from_position == target_position:
                return _Change(
                    message=f'"{department.name}" is already in that position.',
                    changed=False,
                )

            action = MoveAction(
                id=str(uuid4()),
                timestamp=self._clock(),
                department_id=department_id,
                department_name=department.name,
                from_section_id=from_section_id,
                from_position=from_position,
                to_section_id=target_section_id,
                to_position=target_position,
                previous_state=list(self._assignments),
            )

            if from_section_id == target_section_id:
                updates = self._reordered_section(department, target_position)
                self._patch_orders(target_section_id, updates)
                result = await self.store.bulk_reorder(
                    self.organization_id,
                    self.vertical_id,
                    target_section_id,
                    updates,
                    updated_by=actor.user_id,
                )
                self._require_rows(result, "reorder")
                message = f'Reordered "{department.name}".'
            else:
                self._move_entry_across(
                    department_id, from_section_id, target_section_id, target_position
                )
                result = await self.store.move(
                    self.organization_id,
                    self.vertical_id,
                    department_id,
                    from_section_id,
                    target_section_id,
                    target_position,
                    updated_by=actor.user_id,
                )
                self._require_rows(result, "move")
                message = f'Moved "{department.name}" to {target_section_id.value}.'

            self.undo_stack.push(action)
            return _Change(
                message=message,
                affected_rows=result.affected_rows,
                department_id=department_id,
                section_id=target_section_id,
            )

        operation: LayoutOperation = "move"
        current = self._find_department(department_id)
        if current is not None and current.section_id == target_section_id:
            operation = "reorder"
        return await self._execute(operation, actor, apply)

    async def undo_last_move(self, *, actor: Principal) -> OperationOutcome:
        async def apply() -> _Change:
            self.undo_stack.prune_expired()
            entry = self.undo_stack.latest()
            if entry is None:
                raise NothingToUndoError("Nothing to undo")
            action = entry.action

            if action.from_section_id == action.to_section_id:
                updates = self._orders_from_snapshot(action)
                self._patch_orders(action.from_section_id, updates)
                result = await self.store.bulk_reorder(
                    self.organization_id,
                    self.vertical_id,
                    action.from_section_id,
                    updates,
                    updated_by=actor.user_id,
                )
            else:
                self._move_entry_across(
                    action.department_id,
                    action.to_section_id,
                    action.from_section_id,
                    action.from_position,
                )
                result = await self.store.move(
                    self.organization_id,
                    self.vertical_id,
                    action.department_id,
                    action.to_section_id,
                    action.from_section_id,
                    action.from_position,
                    updated_by=actor.user_id,
                )
            self._require_rows(result, "undo")

            self.undo_stack.remove(action.id)
            return _Change(
                message=f'Undid move of "{action.department_name}".',
                affected_rows=result.affected_rows,
                department_id=action.department_id,
                section_id=action.from_section_id,
            )

        return await self._execute("undo", actor, apply)

    async def toggle_visibility(self, department_id: str, *, actor: Principal) -> OperationOutcome:
        async def apply() -> _Change:
            department = self.get_department(department_id)
            is_visible = not department.is_visible
            self._patch_entry(department_id, is_visible=is_visible)
            await self.store.upsert(
                self._upsert_for(department, actor, is_visible=is_visible)
            )
            state = "shown" if is_visible else "hidden"
            return _Change(
                message=f'"{department.name}" is now {state}.',
                affected_rows=1,
                department_id=department_id,
                section_id=department.section_id,
            )

        return await self._execute("toggle_visibility", actor, apply)

    async def rename_department(
        self,
        department_id: str,
        custom_name: str | None,
        custom_description: str | None = None,
        *,
        actor: Principal,
    ) -> OperationOutcome:
        """빈 문자열은 오버라이드 해제로 취급한다."""

        async def apply() -> _Change:
            department = self.get_department(department_id)
            name = (custom_name or "").strip() or None
            description = (custom_description or "").strip() or None
            self._patch_entry(
                department_id,
                custom_name=name,
                custom_description=description,
            )
            await self.store.upsert(
                self._upsert_for(
                    department,
                    actor,
                    custom_name=name,
                    custom_description=description,
                )
            )
            return _Change(
                message=f'Saved display settings for "{name or department.default_name}".',
                affected_rows=1,
                department_id=department_id,
                section_id=department.section_id,
            )

        return await self._execute("rename", actor, apply)

    async def reset_department(self, department_id: str, *, actor: Principal) -> OperationOutcome:
        async def apply() -> _Change:
            department = self.get_department(department_id)
            if not department.has_customization:
                return _Change(
                    message=f'"{department.name}" already uses the default settings.',
                    changed=False,
                )

            self._assignments = [
                entry for entry in self._assignments if entry.department_id != department_id
            ]
            deleted = await self.store.delete_one(
                self.organization_id,
                self.vertical_id,
                department_id,
            )
            if not deleted:
                raise ZeroRowsAffectedError("reset_department")
            return _Change(
                message=f'"{department.default_name}" was reset to its defaults.',
                affected_rows=1,
                department_id=department_id,
            )

        return await self._execute("reset_department", actor, apply)

    async def reset_to_defaults(self, *, actor: Principal) -> OperationOutcome:
        async def apply() -> _Change:
            persisted = sum(
                1 for entry in self._assignments if isinstance(entry, PersistedAssignment)
            )
            self._assignments = []
            if not await self.store.delete_all(self.organization_id, self.vertical_id):
                raise ZeroRowsAffectedError(
                    "reset",
                    "Reset did not complete. The layout was not changed.",
                )
            self.undo_stack.clear()
            return _Change(
                message="Department layout was reset to defaults.",
                affected_rows=persisted,
            )

        return await self._execute("reset", actor, apply)

    async def initialize_defaults(self, *, actor: Principal) -> OperationOutcome:
        """Persist every definition at its default section and order"""

        async def apply() -> _Change:
            upserts = []
            for definition in self.definitions:
                entry = default_entry(definition, self.defaults)
                upserts.append(
                    AssignmentUpsert(
                        organization_id=self.organization_id,
                        vertical_id=self.vertical_id,
                        department_id=definition.id,
                        department_key=entry.department_key,
                        section_id=entry.section_id,
                        display_order=entry.display_order,
                        is_visible=True,
                        updated_by=actor.user_id,
                    )
                )
            created = await self.store.initialize_defaults(
                self.organization_id,
                self.vertical_id,
                upserts,
            )
            if created == 0:
                return _Change(
                    message="Department layout is already initialized.",
                    changed=False,
                )
            return _Change(
                message=f"Initialized {created} department assignments.",
                affected_rows=created,
            )

        return await self._execute("initialize", actor, apply)

    # ==================== Execution ====================

    async def _execute(
        self,
        operation: LayoutOperation,
        actor: Principal,
        apply: Callable[[], Awaitable[_Change]],
    ) -> OperationOutcome:
        snapshot = list(self._assignments)
        try:
            if self.fallback_mode:
                raise FallbackModeError(
                    self.warning or "Department layout is read-only until storage is available."
                )
            ensure_can_manage_layout(actor, self.organization_id)
            change = await apply()
        except LayoutException as exc:
            self._assignments = snapshot
            return self._report_failure(operation, exc)
        except Exception as exc:  # noqa: BLE001
            self._assignments = snapshot
            logger.exception(
                "department_layout_unexpected_error",
                operation=operation,
                organization_id=self.organization_id,
                vertical_id=self.vertical_id,
            )
            return self._report_failure(operation, TransientFailureError(str(exc)))

        if not change.changed:
            return OperationOutcome(success=True, message=change.message)

        await self._reload_after_write(operation)
        log_layout_mutation(
            operation=operation,
            organization_id=self.organization_id,
            vertical_id=self.vertical_id,
            outcome="success",
            department_id=change.department_id,
            affected_rows=change.affected_rows,
            actor=actor.user_id,
        )
        await self.events.publish(
            DepartmentLayoutChanged(
                organization_id=self.organization_id,
                vertical_id=self.vertical_id,
                operation=operation,
                department_id=change.department_id,
                section_id=change.section_id,
                affected_rows=change.affected_rows,
            )
        )
        return self._report_success(
            OperationOutcome(
                success=True,
                message=change.message,
                affected_rows=change.affected_rows,
                changed=True,
            )
        )

    async def _reload_after_write(self, operation: str) -> None:
        # The write already succeeded; a failed reload keeps the optimistic state
        try:
            await self.load()
        except LayoutException as exc:
            logger.error(
                "department_layout_reload_failed",
                operation=operation,
                organization_id=self.organization_id,
                vertical_id=self.vertical_id,
                error=exc.message,
            )

    def _report_success(self, outcome: OperationOutcome) -> OperationOutcome:
        if self.on_success is not None:
            self.on_success(outcome.message)
        return outcome

    def _report_failure(self, operation: str, exc: LayoutException) -> OperationOutcome:
        log_layout_mutation(
            operation=operation,
            organization_id=self.organization_id,
            vertical_id=self.vertical_id,
            outcome="failure",
            error_code=exc.code,
            error=exc.message,
        )
        if self.on_error is not None:
            self.on_error(exc.message)
        return OperationOutcome(success=False, message=exc.message, error=exc)

    # ==================== Local state helpers ====================

    def _find_department(self, department_id: str) -> MergedDepartment | None:
        try:
            return self.get_department(department_id)
        except RecordNotFoundError:
            return None

    def _definition(self, department_id: str) -> DepartmentDefinition:
        for definition in self.definitions:
            if definition.id == department_id:
                return definition
        raise RecordNotFoundError(f"Department '{department_id}' not found")

    def _patch_entry(self, department_id: str, **changes) -> None:
        """Replace the entry in place, or append a virtual one"""

        for index, entry in enumerate(self._assignments):
            if entry.department_id == department_id:
                self._assignments[index] = entry.model_copy(update=changes)
                return
        virtual = default_entry(self._definition(department_id), self.defaults)
        self._assignments.append(virtual.model_copy(update=changes))

    def _patch_orders(self, section_id: SectionId, updates: Iterable[BulkOrderUpdate]) -> None:
        for update in updates:
            self._patch_entry(
                update.department_id,
                section_id=section_id,
                display_order=update.display_order,
            )

    def _move_entry_across(
        self,
        department_id: str,
        from_section_id: SectionId,
        to_section_id: SectionId,
        position: int,
    ) -> None:
        """Local mirror of the store's cross-section move shifts"""

        current = next(
            (entry for entry in self._assignments if entry.department_id == department_id),
            None,
        )
        self._patch_orders(
            to_section_id,
            self._shifted_orders(to_section_id, position, 1, department_id),
        )
        if current is not None and current.section_id == from_section_id:
            self._patch_orders(
                from_section_id,
                self._shifted_orders(
                    from_section_id, current.display_order + 1, -1, department_id
                ),
            )
        self._patch_entry(department_id, section_id=to_section_id, display_order=position)

    def _shifted_orders(
        self,
        section_id: SectionId,
        min_order: int,
        delta: int,
        exclude_department_id: str,
    ) -> list[BulkOrderUpdate]:
        return [
            BulkOrderUpdate(
                department_id=entry.department_id,
                display_order=entry.display_order + delta,
            )
            for entry in self._assignments
            if entry.section_id == section_id
            and entry.display_order >= min_order
            and entry.department_id != exclude_department_id
        ]

    def _reordered_section(
        self,
        department: MergedDepartment,
        target_position: int,
    ) -> list[BulkOrderUpdate]:
        members = section_members(self.all_departments(), department.section_id)
        ordered = [member.id for member in members if member.id != department.id]
        ordered.insert(min(target_position, len(ordered)), department.id)
        return [
            BulkOrderUpdate(department_id=member_id, display_order=index)
            for index, member_id in enumerate(ordered)
        ]

    def _orders_from_snapshot(self, action: MoveAction) -> list[BulkOrderUpdate]:
        previous = merge_all(self.definitions, action.previous_state, self.defaults)
        return [
            BulkOrderUpdate(department_id=member.id, display_order=member.display_order)
            for member in section_members(previous, action.from_section_id)
        ]

    def _upsert_for(
        self,
        department: MergedDepartment,
        actor: Principal,
        **overrides,
    ) -> AssignmentUpsert:
        values = {
            "organization_id": self.organization_id,
            "vertical_id": self.vertical_id,
            "department_id": department.id,
            "department_key": department.entry.department_key,
            "section_id": department.section_id,
            "display_order": department.display_order,
            "is_visible": department.is_visible,
            "custom_name": department.custom_name,
            "custom_description": department.custom_description,
            "updated_by": actor.user_id,
        }
        values.update(overrides)
        return AssignmentUpsert(**values)

    @staticmethod
    def _require_rows(result: MutationResult, operation: str) -> None:
        if not result.success or result.affected_rows == 0:
            raise ZeroRowsAffectedError(operation)


class LayoutEngineRegistry:
    """
    Process-wide registry of layout engines keyed by (organization, vertical)

    Engines share one store and one health cache. The registry also owns the
    sweeper that prunes expired undo entries of every engine.
    """

    def __init__(
        self,
        store: AssignmentStoreProtocol,
        *,
        cache: StoreHealthCache | None = None,
        definitions_provider: Callable[[str], Sequence[DepartmentDefinition]] = (
            get_department_definitions
        ),
        defaults: SectionDefaults = DEFAULT_SECTION_DEFAULTS,
        sweep_interval_seconds: float | None = None,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else InMemoryStoreHealthCache()
        self.definitions_provider = definitions_provider
        self.defaults = defaults
        self.sweeper = PeriodicSweeper(
            self.prune_expired_undo,
            interval_seconds=sweep_interval_seconds,
        )
        self._engines: dict[tuple[str, str], DepartmentLayoutService] = {}
        self._creation_locks: dict[tuple[str, str], asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._engines)

    async def get(self, organization_id: str, vertical_id: str) -> DepartmentLayoutService:
        """
        Return the engine for the scope, creating and loading it on first use

        Raises:
            RecordNotFoundError: Unknown vertical
            TransientFailureError: Initial load failed
        """
        key = (organization_id, vertical_id)
        engine = self._engines.get(key)
        if engine is not None:
            return engine

        # Concurrent first requests for one scope must share a single engine
        lock = self._creation_locks.setdefault(key, asyncio.Lock())
        async with lock:
            engine = self._engines.get(key)
            if engine is None:
                engine = DepartmentLayoutService(
                    organization_id,
                    vertical_id,
                    self.definitions_provider(vertical_id),
                    self.store,
                    health=StoreHealthDetector(self.store, self.cache),
                    defaults=self.defaults,
                )
                await engine.load()
                self._engines[key] = engine
                logger.info(
                    "layout_engine_created",
                    organization_id=organization_id,
                    vertical_id=vertical_id,
                    fallback_mode=engine.fallback_mode,
                )
        return engine

    def prune_expired_undo(self) -> int:
        return sum(engine.undo_stack.prune_expired() for engine in self._engines.values())

    def start(self) -> None:
        self.sweeper.start()

    async def stop(self) -> None:
        await self.sweeper.stop()
