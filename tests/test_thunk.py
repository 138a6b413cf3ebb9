"""Unit tests for Thunk."""

import threading

import pytest

from graphpack.thunk import Thunk
from graphpack.thunk import ThunkState


class TestThunkEvaluation:
    """Tests for forcing thunks."""

    def test_starts_suspended(self):
        assert Thunk(int).state is ThunkState.SUSPENDED

    def test_force_passes_arguments(self):
        thunk = Thunk(lambda a, b=0: a * 10 + b, 4, b=2)
        assert thunk.force() == 42
        assert thunk.state is ThunkState.EVALUATED

    def test_evaluates_once(self):
        calls = []

        def compute():
            calls.append(1)
            return len(calls)

        thunk = Thunk(compute)
        assert thunk.force() == 1
        assert thunk.force() == 1
        assert calls == [1]

    def test_evaluated_constructor(self):
        thunk = Thunk.evaluated("done")
        assert thunk.state is ThunkState.EVALUATED
        assert thunk.force() == "done"

    def test_failed_evaluation_stays_suspended(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise ValueError("first try fails")
            return "ok"

        thunk = Thunk(flaky)
        with pytest.raises(ValueError, match="first try fails"):
            thunk.force()
        assert thunk.state is ThunkState.SUSPENDED
        assert thunk.force() == "ok"

    def test_recursive_force_raises(self):
        holder = []
        thunk = Thunk(lambda: holder[0].force())
        holder.append(thunk)

        with pytest.raises(RuntimeError, match="own evaluation"):
            thunk.force()
        assert thunk.state is ThunkState.SUSPENDED

    def test_state_while_evaluating(self):
        started = threading.Event()
        release = threading.Event()

        def slow():
            started.set()
            release.wait(5)
            return 1

        thunk = Thunk(slow)
        worker = threading.Thread(target=thunk.force)
        worker.start()
        try:
            assert started.wait(5)
            assert thunk.state is ThunkState.EVALUATING
        finally:
            release.set()
            worker.join(5)
        assert thunk.state is ThunkState.EVALUATED

    def test_concurrent_force_waits_for_first_evaluation(self):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow():
            calls.append(1)
            started.set()
            release.wait(5)
            return "value"

        thunk = Thunk(slow)
        results = []
        first = threading.Thread(target=lambda: results.append(thunk.force()))
        first.start()
        assert started.wait(5)

        second = threading.Thread(target=lambda: results.append(thunk.force()))
        second.start()
        release.set()
        first.join(5)
        second.join(5)

        assert results == ["value", "value"]
        assert calls == [1]


class TestThunkRepr:
    """Tests for Thunk.__repr__."""

    def test_suspended(self):
        assert repr(Thunk(int)) == "Thunk(<suspended>)"

    def test_evaluated(self):
        assert repr(Thunk.evaluated(3)) == "Thunk(value=3)"


class TestThunkState:
    """Tests for inconsistent thunk state."""

    def test_blank_thunk_cannot_be_forced(self):
        thunk = Thunk.__new__(Thunk)
        thunk._init_sync()
        with pytest.raises(RuntimeError, match="neither a value nor a function"):
            thunk.force()
        assert thunk.state is ThunkState.SUSPENDED
