"""Tests for operation phase tracking and the shared context."""

from __future__ import annotations

import threading

import pytest

from git_action_runner.context import GitActionContext, get_default_context, resolve_context
from git_action_runner.executor import get_operation_phase, is_git_operation_running
from git_action_runner.models import OperationPhase
from git_action_runner.phase import OperationPhaseTracker


def test_phase_tracker_starts_idle() -> None:
    tracker = OperationPhaseTracker()
    assert tracker.phase is OperationPhase.IDLE
    assert tracker.is_running() is False


def test_phase_tracker_resets_to_idle_on_exception() -> None:
    tracker = OperationPhaseTracker()

    with pytest.raises(RuntimeError):
        with tracker.enter(OperationPhase.PUSHING):
            assert tracker.phase is OperationPhase.PUSHING
            assert tracker.is_running()
            raise RuntimeError("boom")

    assert tracker.phase is OperationPhase.IDLE
    assert tracker.is_running() is False


def test_operation_phase_accessors_read_context() -> None:
    ctx = GitActionContext()
    ctx.phases.set(OperationPhase.CREATING_PR)

    assert get_operation_phase(context=ctx) is OperationPhase.CREATING_PR
    assert get_operation_phase(context=ctx).value == "creating-pr"
    assert is_git_operation_running(context=ctx) is True


def test_phase_visible_from_another_thread() -> None:
    ctx = GitActionContext()
    entered = threading.Event()
    release = threading.Event()

    def _hold() -> None:
        with ctx.phases.enter(OperationPhase.COMMITTING):
            entered.set()
            release.wait(timeout=10)

    worker = threading.Thread(target=_hold)
    worker.start()
    assert entered.wait(timeout=10)
    assert is_git_operation_running(context=ctx) is True

    release.set()
    worker.join(timeout=10)
    assert get_operation_phase(context=ctx) is OperationPhase.IDLE


def test_default_context_is_shared() -> None:
    assert get_default_context() is get_default_context()
    assert resolve_context(None) is get_default_context()

    ctx = GitActionContext()
    assert resolve_context(ctx) is ctx
