"""Tests for the deadline and cancellation token."""

from unittest.mock import MagicMock

import pytest

from chaos_canary.deadline import Deadline


class FakeClock:

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_expires_after_timeout():
    clock = FakeClock()
    deadline = Deadline(30, clock=clock)

    assert deadline.remaining() == 30
    assert not deadline.expired

    clock.now += 30

    assert deadline.expired
    assert deadline.done
    assert deadline.remaining() == 0


def test_child_never_outlives_parent():
    clock = FakeClock()
    parent = Deadline(10, clock=clock)
    child = Deadline(60, parent=parent, clock=clock)

    assert child.remaining() == 10


def test_cancel_runs_callbacks_once():
    deadline = Deadline(30)
    callback = MagicMock()
    deadline.add_callback(callback)

    deadline.cancel()
    deadline.cancel()

    assert deadline.cancelled
    callback.assert_called_once_with()


def test_parent_cancellation_propagates():
    parent = Deadline(30)
    child = Deadline(10, parent=parent)

    parent.cancel()

    assert child.cancelled


def test_child_of_cancelled_parent_starts_cancelled():
    parent = Deadline(30)
    parent.cancel()

    assert Deadline(10, parent=parent).cancelled


def test_callback_added_after_cancel_runs_immediately():
    deadline = Deadline(30)
    deadline.cancel()
    callback = MagicMock()

    deadline.add_callback(callback)

    callback.assert_called_once_with()


def test_removed_callback_is_not_run():
    deadline = Deadline(30)
    callback = MagicMock()
    deadline.add_callback(callback)
    deadline.remove_callback(callback)

    deadline.cancel()

    callback.assert_not_called()


def test_negative_timeout_rejected():
    with pytest.raises(ValueError):
        Deadline(-1)


def test_close_detaches_from_parent():
    parent = Deadline(30)
    child = Deadline(10, parent=parent)

    child.close()
    parent.cancel()

    assert not child.cancelled


def test_context_manager_detaches_on_exit():
    parent = Deadline(3600)

    for _ in range(5):
        with Deadline(10, parent=parent):
            pass

    assert parent._callbacks == []
