"""
Promises over a client or a multi scheduler

A promise drives its promiser (a :class:`Client` or a :class:`CurlMulti`)
synchronously and records the outcome exactly once.
"""

import functools
import logging
from enum import Enum

from ._errors import IncompleteTransfer, InvalidState, TransferError, UnfulfilledPromise
from ._handler import Handler
from ._multi import CurlMulti

logger = logging.getLogger(__name__)


class PromiseState(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


PENDING = PromiseState.PENDING
FULFILLED = PromiseState.FULFILLED
REJECTED = PromiseState.REJECTED
CANCELLED = PromiseState.CANCELLED

_OK = "ok"
_ERROR = "error"
_INCOMPLETE = "incomplete"


class Promise:
    """Single-shot future over one client or scheduler.

    ``wait()`` drives the transfer and returns (or raises) the outcome; once
    the promise is settled later calls return the cached outcome.
    ``then()`` always sends again and hands the response to one of two
    callables.
    """

    _states = (PENDING, FULFILLED, REJECTED)

    def __init__(self, promiser, timeout=None, select_timeout=1.0):
        self._promiser = promiser
        self._timeout = timeout
        self._select_timeout = select_timeout
        self._state = PENDING
        self._result = None
        self._error = None

    @classmethod
    def create(cls, promiser, **kwargs):
        return cls(promiser, **kwargs)

    @property
    def promiser(self):
        return self._promiser

    def has_promiser(self):
        return self._promiser is not None

    @property
    def select_timeout(self):
        return self._select_timeout

    # State

    @property
    def state(self):
        return self._state

    def set_state(self, state):
        """Move to ``state``; settled promises cannot move to another state"""
        try:
            state = PromiseState(state.lower() if isinstance(state, str) else state)
        except ValueError:
            raise InvalidState(f"Unknown promise state {state!r}") from None
        if state not in self._states:
            raise InvalidState(f"{type(self).__name__} does not support the {state.value} state")
        if state is not self._state and self._state is not PENDING:
            raise InvalidState(f"Cannot move a {self._state.value} promise to {state.value}")

        if state is not self._state:
            logger.debug("Promise %s -> %s", self._state.value, state.value)
        self._state = state
        return self

    def is_pending(self):
        return self._state is PENDING

    def is_fulfilled(self):
        return self._state is FULFILLED

    def is_rejected(self):
        return self._state is REJECTED

    def is_cancelled(self):
        return self._state is CANCELLED

    # Driving the promiser

    def _is_multi(self):
        return isinstance(self._promiser, CurlMulti)

    def _drive(self):
        if self._is_multi():
            self._promiser.run(timeout=self._timeout, select_timeout=self._select_timeout)
        else:
            self._promiser.perform()

    def _settle(self):
        """Drive the promiser once and classify what happened.

        Returns:
            Tuple of (status, result, error) where status is ok, error or
            incomplete
        """
        try:
            self._drive()
        except TransferError as exc:
            return _ERROR, None, UnfulfilledPromise(exc.code, exc.message)

        if not self._promiser.is_complete():
            return _INCOMPLETE, None, None

        if self._is_multi():
            while self._promiser.poll_completion_info() is not None:
                pass
            result = self._promiser.collect_all_responses()
            failed = [info for info in self._promiser.completed.values() if info.code]
            if failed or self._promiser.is_error():
                codes = [s.status_code for s in result if (s.status_code or 0) // 100 in (4, 5)]
                code = codes[0] if codes else (failed[0].code if failed else None)
                return _ERROR, result, UnfulfilledPromise(
                    code, "There was an error with one of the multiple requests"
                )
            return _OK, result, None

        response = self._promiser.response
        if self._promiser.is_error():
            return _ERROR, response, UnfulfilledPromise(response.code, response.message)
        return _OK, response, None

    def _record(self, state, result, error):
        if self._state is PENDING:
            self._result = result
            self._error = error
            self.set_state(state)

    def _cached(self, unwrap):
        if self._state is FULFILLED:
            return self._result
        if unwrap:
            if self._state is REJECTED:
                raise self._error
            raise IncompleteTransfer("The promise was cancelled before completing")
        return None

    def wait(self, unwrap=True):
        """Drive the transfer to completion and return its result.

        Args:
            unwrap: Raise on failure instead of returning None

        Returns:
            The Response (a list of ResponseSummary for a scheduler), or None
            when the promise was rejected and ``unwrap`` is False

        Raises:
            UnfulfilledPromise: the transfer failed and ``unwrap`` is True
            IncompleteTransfer: the transfer never completed and ``unwrap`` is True
        """
        if self._state is not PENDING:
            return self._cached(unwrap)

        status, result, error = self._settle()
        if status == _INCOMPLETE:
            if unwrap:
                raise IncompleteTransfer("Unable to complete the request")
            return None

        if status == _ERROR:
            self._record(REJECTED, result, error)
            if unwrap:
                raise error
            return None

        self._record(FULFILLED, result, None)
        return result

    @staticmethod
    def _invoke(callback, **kwargs):
        try:
            return callback(**kwargs)
        except Exception:
            logger.exception("Promise callback %r raised", callback)
            return None

    def then(self, on_success, on_failure=None):
        """Send again and pass the response to ``on_success`` or ``on_failure``"""
        status, result, error = self._settle()
        if status == _OK:
            self._record(FULFILLED, result, None)
            self._invoke(on_success, response=result)
        elif status == _ERROR:
            self._record(REJECTED, result, error)
            if on_failure is not None:
                self._invoke(on_failure, response=result)

    def resolve(self):
        return None

    def cancel(self):
        return None

    def __repr__(self):
        return f"<{type(self).__name__} [{self._state.value}]>"


class ChainedPromise(Promise):
    """Promise with registered callbacks, forwarding and cancellation.

    Callbacks are stored with optional bound keyword arguments and run by
    :meth:`resolve`. A success callback that returns another promise hands
    the remaining success callbacks over to it.
    """

    _states = (PENDING, FULFILLED, REJECTED, CANCELLED)

    def __init__(self, promiser, timeout=None, select_timeout=1.0):
        super().__init__(promiser, timeout=timeout, select_timeout=select_timeout)
        self._success = []
        self._failure = []
        self._cancel = []
        self._finally = []

    @staticmethod
    def _bind(callback, bound):
        if not callable(callback):
            raise TypeError(f"Promise callbacks must be callable, got {callback!r}")
        return functools.partial(callback, **bound) if bound else callback

    def on_success(self, callback, **bound):
        self._success.append(self._bind(callback, bound))
        return self

    def on_failure(self, callback, **bound):
        self._failure.append(self._bind(callback, bound))
        return self

    def on_cancel(self, callback, **bound):
        self._cancel.append(self._bind(callback, bound))
        return self

    def on_finally(self, callback, **bound):
        self._finally.append(self._bind(callback, bound))
        return self

    @property
    def success_callbacks(self):
        return list(self._success)

    @property
    def failure_callbacks(self):
        return list(self._failure)

    @property
    def cancel_callbacks(self):
        return list(self._cancel)

    @property
    def finally_callbacks(self):
        return list(self._finally)

    def then(self, on_success, on_failure=None, resolve=False):
        """Register callbacks, resolving right away when ``resolve`` is True"""
        self.on_success(on_success)
        if on_failure is not None:
            self.on_failure(on_failure)
        if resolve:
            self.resolve()
        return self

    def catch(self, on_failure, resolve=False):
        self.on_failure(on_failure)
        if resolve:
            self.resolve()
        return self

    def finally_(self, callback, resolve=False):
        self.on_finally(callback)
        if resolve:
            self.resolve()
        return self

    def forward(self, next_promise, index=0):
        """Hand callbacks from ``index`` onwards over to ``next_promise``"""
        for callback in self._success[index:]:
            next_promise.on_success(callback)
        for callback in self._failure:
            next_promise.on_failure(callback)
        for callback in self._cancel:
            next_promise.on_cancel(callback)
        for callback in self._finally:
            next_promise.on_finally(callback)
        return next_promise

    def resolve(self):
        """Drive the promiser and run the registered callbacks"""
        if self._state is not PENDING:
            return self

        status, result, error = self._settle()
        if status == _INCOMPLETE:
            raise IncompleteTransfer("Unable to complete the request")

        if status == _OK:
            if not self._success:
                raise InvalidState("No success callback has been registered")
            self._record(FULFILLED, result, None)
            for index, callback in enumerate(self._success):
                value = callback(response=result)
                if isinstance(value, ChainedPromise):
                    self.forward(value, index + 1)
                    if value.success_callbacks:
                        return value.resolve()
                    return self
        else:
            if not self._failure:
                raise InvalidState("No failure callback has been registered")
            self._record(REJECTED, result, error)
            for callback in self._failure:
                callback(response=result)

        for callback in self._finally:
            callback(promise=self)
        return self

    def cancel(self):
        """Abort a pending transfer and run the cancel callbacks"""
        if self._state is not PENDING:
            return self

        if self._is_multi():
            entries = list(self._promiser.handles.values())
            self._promiser.reset()
            for entry in entries:
                if isinstance(entry, Handler):
                    entry.disconnect()
                else:
                    entry.abort()
        else:
            self._promiser.abort()

        self.set_state(CANCELLED)
        for callback in self._cancel:
            callback(promise=self)
        return self
