"""
Multiplexed transfers on a single thread via ``pycurl.CurlMulti``

Handles are registered under a name or a positional index and driven
together: :meth:`CurlMulti.step` advances every transfer without blocking and
:meth:`CurlMulti.await_activity` waits for socket activity between steps.
:meth:`CurlMulti.run` wraps both into a drive-to-completion loop.
"""

import logging
import time
from collections import deque, namedtuple

import pycurl

from ._curl import Curl
from ._errors import MissingSelector, NoResource, TransferError, UnsupportedOption
from ._handler import Handler

logger = logging.getLogger(__name__)

StepResult = namedtuple("StepResult", ["code", "active"])
CompletionInfo = namedtuple("CompletionInfo", ["name", "handle", "code", "message"])
ResponseSummary = namedtuple("ResponseSummary", ["uri", "method", "status_code", "response"])

SUCCESS_CLASSES = (1, 2, 3)
ERROR_CLASSES = (4, 5)


def _pycurl_error(exc):
    code = exc.args[0] if exc.args else None
    message = exc.args[1] if len(exc.args) > 1 else str(exc)
    return TransferError(code, message)


class CurlMulti:
    """Scheduler for many curl transfers sharing one multi handle.

    Entries are either :class:`Curl` handlers or clients wrapping one. A
    client entry is prepared before its handle is registered.

    Transfer failures never raise from the polling loop; they are reported
    through :class:`CompletionInfo` and the collected responses.
    """

    def __init__(self, options=None):
        self._resource = pycurl.CurlMulti()
        self._entries = {}
        self._options = {}
        self._next_index = 0
        self._pending = deque()
        self._completed = {}
        self._last_info = None
        self._active = 0

        if options:
            self.set_options(options)

    # Resource and options

    def has_resource(self):
        return self._resource is not None

    def resource(self):
        if self._resource is None:
            raise NoResource("The multi handle has been disconnected")
        return self._resource

    def set_option(self, opt, value):
        resource = self.resource()
        try:
            resource.setopt(opt, value)
        except (pycurl.error, TypeError, ValueError) as exc:
            raise UnsupportedOption(opt, str(exc)) from exc
        self._options[opt] = value
        return self

    def set_options(self, options):
        for opt, value in options.items():
            self.set_option(opt, value)
        return self

    def get_option(self, opt, default=None):
        return self._options.get(opt, default)

    def has_option(self, opt):
        return opt in self._options

    @property
    def options(self):
        return dict(self._options)

    # Registration

    @staticmethod
    def _handler_of(entry):
        handler = entry if isinstance(entry, Handler) else getattr(entry, "handler", None)
        if not isinstance(handler, Curl):
            raise TypeError(f"Only curl handlers can be multiplexed, got {handler!r}")
        return handler

    def _name_of(self, entry):
        for name, value in self._entries.items():
            if value is entry:
                return name
        return None

    def add_handle(self, entry, name=None):
        """Register a handler or client under ``name`` (or the next index).

        Adding an object that is already registered does nothing. Adding
        under a name that is taken replaces the previous entry.
        """
        if self._name_of(entry) is not None:
            return self

        if not isinstance(entry, Handler):
            entry.prepare()
            entry.prepare_handler()
        handler = self._handler_of(entry)

        if name is None:
            name = self._next_index
        elif name in self._entries:
            self.remove_handle(name=name)
        if isinstance(name, int) and name >= self._next_index:
            self._next_index = name + 1

        handler.clear_content()
        try:
            self.resource().add_handle(handler.resource())
        except pycurl.error as exc:
            raise _pycurl_error(exc) from exc

        self._entries[name] = entry
        self._completed.pop(name, None)
        self._last_info = None
        logger.debug("Registered handle %r for %s %s", name, handler.method, handler.uri)
        return self

    def add_handles(self, entries):
        """Register several entries; integer keys and sequences are added unnamed"""
        if hasattr(entries, "items"):
            for name, entry in entries.items():
                self.add_handle(entry, None if isinstance(name, int) else name)
        else:
            for entry in entries:
                self.add_handle(entry)
        return self

    def get_handle(self, name):
        return self._entries.get(name)

    def has_handle(self, name):
        return name in self._entries

    @property
    def handles(self):
        return dict(self._entries)

    def remove_handle(self, name=None, handle=None):
        """Deregister an entry selected by name or by object.

        Raises:
            MissingSelector: if neither ``name`` nor ``handle`` selects anything
        """
        if name is not None and name in self._entries:
            entry = self._entries.pop(name)
        elif handle is not None:
            entry = handle
            name = self._name_of(handle)
            if name is not None:
                del self._entries[name]
        else:
            raise MissingSelector("A registered handle name or a handle object is required")

        if name is not None:
            self._completed.pop(name, None)
        self._deregister(entry)
        logger.debug("Removed handle %r", name)
        return self

    def _deregister(self, entry):
        handler = entry if isinstance(entry, Handler) else getattr(entry, "handler", None)
        if self._resource is None or handler is None or not handler.has_resource():
            return
        try:
            self._resource.remove_handle(handler.resource())
        except pycurl.error as exc:
            logger.debug("Handle was already detached from the multi handle: %s", exc)

    # Driving transfers

    def step(self):
        """Advance every registered transfer once without blocking.

        Returns:
            StepResult(code, active) with the multi status code and the number
            of transfers still running
        """
        resource = self.resource()
        try:
            while True:
                code, active = resource.perform()
                if code != pycurl.E_CALL_MULTI_PERFORM:
                    break
        except pycurl.error as exc:
            raise _pycurl_error(exc) from exc

        self._active = active
        return StepResult(code, active)

    def await_activity(self, timeout=1.0):
        """Block until a transfer has socket activity or ``timeout`` seconds pass"""
        return self.resource().select(timeout)

    def run(self, timeout=None, select_timeout=1.0):
        """Drive all transfers until none is active or ``timeout`` elapses.

        Returns:
            Number of transfers still active (0 when everything finished)
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        result = self.step()

        while result.active:
            wait = select_timeout
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug("Gave up on %d active transfers after %ss", result.active, timeout)
                    break
                wait = min(wait, remaining)
            self.await_activity(wait)
            result = self.step()

        return result.active

    @property
    def active(self):
        return self._active

    # Completion

    def _lookup(self, curl):
        for name, entry in self._entries.items():
            handler = self._handler_of(entry)
            if handler.has_resource() and handler.resource() is curl:
                return name
        return None

    def poll_completion_info(self):
        """Return the next completion notification, or None if none is pending.

        Notifications for handles that were removed in the meantime are
        dropped.
        """
        resource = self.resource()

        while True:
            if not self._pending:
                remaining = 1
                while remaining:
                    remaining, ok_list, err_list = resource.info_read()
                    self._pending.extend((curl, 0, "") for curl in ok_list)
                    self._pending.extend(err_list)
            if not self._pending:
                return None

            curl, code, message = self._pending.popleft()
            name = self._lookup(curl)
            if name is None:
                logger.debug("Dropping completion for a handle that is no longer registered")
                continue

            info = CompletionInfo(name, self._entries[name], code, message)
            self._completed[name] = info
            self._last_info = info
            if code:
                logger.debug("Transfer %r failed: [%s] %s", name, code, message)
            return info

    def is_complete(self):
        """True once a transfer-done notification has been observed"""
        self.poll_completion_info()
        return self._last_info is not None

    def is_handle_complete(self, name):
        while name not in self._completed:
            if self.poll_completion_info() is None:
                break
        return name in self._completed

    @property
    def completed(self):
        return dict(self._completed)

    def _summarize(self, entry):
        handler = self._handler_of(entry)
        handler.set_response(handler.content())
        response = handler.parse_response()
        if handler is not entry:
            entry.set_response(response)
        return ResponseSummary(handler.uri, handler.method, response.code, response)

    def collect_all_responses(self):
        """Parse every registered handle's content into a ResponseSummary"""
        return [self._summarize(entry) for entry in self._entries.values()]

    def get_response(self, name):
        return self._summarize(self._entries[name]).response

    def _match_status(self, classes, strict):
        for summary in self.collect_all_responses():
            status_class = (summary.status_code or 0) // 100
            if strict and status_class not in classes:
                return False
            if not strict and status_class in classes:
                return True
        return strict

    def is_success(self, strict=True):
        """Check the status classes of the collected responses.

        Returns None while nothing has completed. In strict mode the first
        response outside 1xx-3xx returns False; otherwise the first response
        inside 1xx-3xx returns True.
        """
        if not self.is_complete():
            return None
        return self._match_status(SUCCESS_CLASSES, strict)

    def is_error(self, strict=False):
        """Like :meth:`is_success`, for 4xx and 5xx responses"""
        if not self.is_complete():
            return None
        return self._match_status(ERROR_CLASSES, strict)

    def send_async(self, timeout=None, select_timeout=1.0):
        """Return a Promise driving this scheduler"""
        from ._promise import Promise

        return Promise(self, timeout=timeout, select_timeout=select_timeout)

    # Teardown

    def _clear_state(self):
        self._entries = {}
        self._next_index = 0
        self._pending.clear()
        self._completed = {}
        self._last_info = None
        self._active = 0

    def reset(self):
        """Deregister and drop every handle, keeping the multi handle"""
        for entry in list(self._entries.values()):
            self._deregister(entry)
        self._clear_state()
        return self

    def disconnect(self):
        if self._resource is not None:
            for entry in list(self._entries.values()):
                self._deregister(entry)
            self._resource.close()
            self._resource = None
            logger.debug("Closed multi handle")
        self._clear_state()
        self._options = {}

    def __len__(self):
        return len(self._entries)

    def __contains__(self, name):
        return name in self._entries

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def __repr__(self):
        return f"<CurlMulti [{len(self._entries)} handles]>"
