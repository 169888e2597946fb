import asyncio

import pytest

from app.models.section_assignment import SectionId
from app.schemas.department_layout import MoveAction
from app.services.undo_stack import PeriodicSweeper, UndoStack


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_action(action_id: str, department_id: str = "finance") -> MoveAction:
    return MoveAction(
        id=action_id,
        timestamp=0.0,
        department_id=department_id,
        department_name=department_id.title(),
        from_section_id=SectionId.DEPARTMENTS,
        from_position=0,
        to_section_id=SectionId.OPERATIONS,
        to_position=2,
    )


def test_push_sets_expiry_from_ttl():
    clock = FakeClock()
    stack = UndoStack(max_entries=10, ttl_seconds=300, clock=clock)

    entry = stack.push(build_action("a1"))

    assert entry.expires_at == clock.now + 300
    assert stack.latest() == entry


def test_latest_returns_most_recent_first():
    stack = UndoStack(max_entries=10, ttl_seconds=300, clock=FakeClock())
    stack.push(build_action("a1"))
    stack.push(build_action("a2"))

    assert stack.latest().action.id == "a2"
    assert [entry.action.id for entry in stack.active_entries()] == ["a2", "a1"]


def test_oldest_entry_is_evicted_at_capacity():
    stack = UndoStack(max_entries=3, ttl_seconds=300, clock=FakeClock())
    for index in range(5):
        stack.push(build_action(f"a{index}"))

    assert len(stack) == 3
    assert [entry.action.id for entry in stack.active_entries()] == ["a4", "a3", "a2"]


def test_expired_entries_are_invisible_before_sweep():
    clock = FakeClock()
    stack = UndoStack(max_entries=10, ttl_seconds=300, clock=clock)
    stack.push(build_action("a1"))

    clock.advance(301)

    assert stack.latest() is None
    assert stack.active_entries() == []
    # still physically present until pruned
    assert len(stack) == 1


def test_prune_expired_removes_only_expired():
    clock = FakeClock()
    stack = UndoStack(max_entries=10, ttl_seconds=300, clock=clock)
    stack.push(build_action("old"))
    clock.advance(200)
    stack.push(build_action("new"))
    clock.advance(150)

    assert stack.prune_expired() == 1
    assert [entry.action.id for entry in stack.active_entries()] == ["new"]


def test_remove_and_clear():
    stack = UndoStack(max_entries=10, ttl_seconds=300, clock=FakeClock())
    stack.push(build_action("a1"))
    stack.push(build_action("a2"))

    assert stack.remove("a1") is True
    assert stack.remove("missing") is False
    assert len(stack) == 1

    stack.clear()
    assert len(stack) == 0


def test_defaults_come_from_settings():
    stack = UndoStack()

    assert stack.max_entries == 10
    assert stack.ttl_seconds == 300


@pytest.mark.asyncio
async def test_periodic_sweeper_runs_until_stopped():
    calls: list[int] = []

    def sweep() -> int:
        calls.append(1)
        return 0

    sweeper = PeriodicSweeper(sweep, interval_seconds=0.01)
    sweeper.start()
    assert sweeper.running is True

    await asyncio.sleep(0.05)
    await sweeper.stop()

    assert sweeper.running is False
    assert len(calls) >= 1


@pytest.mark.asyncio
async def test_periodic_sweeper_survives_failing_sweep():
    calls: list[int] = []

    def sweep() -> int:
        calls.append(1)
        raise RuntimeError("boom")

    sweeper = PeriodicSweeper(sweep, interval_seconds=0.01)
    sweeper.start()
    await asyncio.sleep(0.05)

    assert sweeper.running is True
    await sweeper.stop()
    assert len(calls) >= 2
