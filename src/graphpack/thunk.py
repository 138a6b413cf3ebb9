"""Suspended computations that can be packed in any state of evaluation."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from graphpack.utils import build_repr

T = TypeVar("T")


class ThunkState(Enum):
    """Evaluation state of a `Thunk`."""

    SUSPENDED = "suspended"
    EVALUATING = "evaluating"
    EVALUATED = "evaluated"


class Thunk(Generic[T]):
    """
    A computation that is evaluated at most once, on demand.

    A thunk can be packed whatever its state: a suspended thunk is captured as its function and
    arguments and stays suspended after unpacking, an evaluated thunk is captured as its value.
    A thunk that some thread is evaluating right now is a *black hole*: the non-blocking packer
    reports it instead of waiting for the evaluation to finish.

    Args:
        func: Function computing the value.
        *args: Positional arguments for `func`.
        **kwargs: Keyword arguments for `func`.

    Examples:
        >>> t = Thunk(sum, [1, 2, 3])
        >>> t.state
        <ThunkState.SUSPENDED: 'suspended'>
        >>> t.force()
        6
        >>> t.state
        <ThunkState.EVALUATED: 'evaluated'>
    """

    def __init__(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._init_sync()
        self._func: Callable[..., T] | None = func
        self._args = args
        self._kwargs = kwargs

    @classmethod
    def evaluated(cls, value: T) -> Thunk[T]:
        """Create an already evaluated thunk holding `value`."""
        thunk: Thunk[T] = cls.__new__(cls)
        thunk._init_sync()
        thunk._set_value(value)
        return thunk

    def _init_sync(self) -> None:
        # _eval_lock is held for the whole evaluation; _state_lock only guards state transitions
        self._eval_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._owner: int | None = None
        self._done = False
        self._value: Any = None
        self._func = None
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}

    @property
    def state(self) -> ThunkState:
        return self._snapshot()[0]

    def force(self) -> T:
        """
        Evaluate the thunk, or return the value of an earlier evaluation.

        Threads forcing a thunk that another thread is evaluating wait for that evaluation. If
        the function raises, the thunk stays suspended and the exception propagates.

        Raises:
            RuntimeError: If the thunk is forced again from within its own evaluation, or has
                neither a value nor a function.
        """
        if self._owner == threading.get_ident():
            raise RuntimeError("Thunk forced from within its own evaluation")

        with self._eval_lock:
            with self._state_lock:
                if self._done:
                    return self._value
                func, args, kwargs = self._func, self._args, self._kwargs
                if func is None:
                    raise RuntimeError("Thunk has neither a value nor a function to evaluate")
                self._owner = threading.get_ident()

            try:
                value = func(*args, **kwargs)
            except BaseException:
                with self._state_lock:
                    self._owner = None
                raise

            with self._state_lock:
                self._set_value(value)
            return value

    def wait(self) -> None:
        """Block until no thread is evaluating this thunk."""
        with self._eval_lock:
            pass

    def _set_value(self, value: Any) -> None:
        self._value = value
        self._done = True
        self._owner = None
        self._func = None
        self._args = ()
        self._kwargs = {}

    def _snapshot(self) -> tuple[ThunkState, Any]:
        """
        Capture the current state atomically.

        Returns:
            ``(EVALUATED, value)``, ``(EVALUATING, owner thread ident)`` or
            ``(SUSPENDED, (func, args, kwargs))``.
        """
        with self._state_lock:
            if self._done:
                return ThunkState.EVALUATED, self._value
            if self._owner is not None:
                return ThunkState.EVALUATING, self._owner
            return ThunkState.SUSPENDED, (self._func, self._args, self._kwargs)

    def _reduce_snapshot(self, state: ThunkState, payload: Any) -> tuple[Any, ...]:
        # State goes through __setstate__ so the thunk is memoized before its payload is packed,
        # which lets a thunk's value refer back to the thunk itself.
        return (_blank_thunk, (type(self),), (state.value, payload))

    def __reduce__(self) -> tuple[Any, ...]:
        state, payload = self._snapshot()
        if state is ThunkState.EVALUATING:
            import pickle

            raise pickle.PicklingError("Cannot pickle a thunk that is under evaluation")
        return self._reduce_snapshot(state, payload)

    def __setstate__(self, state: tuple[str, Any]) -> None:
        kind, payload = state
        self._init_sync()
        if ThunkState(kind) is ThunkState.EVALUATED:
            self._set_value(payload)
        else:
            self._func, self._args, self._kwargs = payload

    def __repr__(self) -> str:
        state, payload = self._snapshot()
        if state is ThunkState.EVALUATED:
            return build_repr("Thunk", kwargs={"value": payload})
        return build_repr("Thunk", f"<{state.value}>")


def _blank_thunk(cls: type[Thunk[Any]]) -> Thunk[Any]:
    return cls.__new__(cls)


__all__ = ["Thunk", "ThunkState"]
