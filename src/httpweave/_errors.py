"""
Exception hierarchy for httpweave

Everything raised by the package derives from RequestException so callers can
catch the whole family with a single clause.
"""


class RequestException(Exception):
    """Base exception for all httpweave errors"""


class InvalidState(RequestException):
    """An object was used in a state that does not allow the operation"""


class NoResource(InvalidState):
    """The handle or scheduler has no provider resource (never acquired or disconnected)"""


class UnsupportedOption(RequestException):
    """The transport provider rejected an option when it was applied"""

    def __init__(self, option, message=None):
        self.option = option
        self.message = message or "The option is not supported by the transport"
        super().__init__(f"{self.message} (option: {option!r})")


class MissingSelector(RequestException, LookupError):
    """A lookup or removal was given neither a name nor an object reference"""


class TransferError(RequestException):
    """The transport provider reported a transfer failure"""

    def __init__(self, code=None, message=None):
        self.code = code
        self.message = message or "The transfer failed"
        if code is None:
            super().__init__(self.message)
        else:
            super().__init__(f"[{code}] {self.message}")


class ConnectionError(TransferError):
    """Connection, DNS or TLS failure"""


class Timeout(TransferError):
    """The transfer timed out"""


class UnfulfilledPromise(RequestException):
    """A promise was rejected and the caller asked for its result"""

    def __init__(self, code=None, message=None):
        self.code = code
        self.message = message or "The promise was not fulfilled"
        if code is None:
            super().__init__(self.message)
        else:
            super().__init__(f"{self.message} ({code})")


class IncompleteTransfer(RequestException):
    """The transport bound to a promise never reached completion"""
