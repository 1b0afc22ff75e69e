"""
Transport handler interface

Every concrete transport (libcurl, urllib3 streams) implements :class:`Handler`
so the scheduler, the promise layer and the client never depend on a
particular provider.
"""

import logging
from abc import ABC, abstractmethod
from collections import namedtuple

from ._errors import InvalidState, NoResource
from ._parser import URLENCODED

logger = logging.getLogger(__name__)

PreparedTransfer = namedtuple("PreparedTransfer", ["method", "uri", "headers", "body"])

_HANDLERS = {}


def register_handler(name, handler_class):
    """Make a Handler subclass available under ``name``"""
    if not (isinstance(handler_class, type) and issubclass(handler_class, Handler)):
        raise TypeError(f"{handler_class!r} is not a Handler subclass")
    _HANDLERS[name] = handler_class


def create_handler(name, **kwargs):
    """Instantiate the handler registered under ``name``"""
    try:
        handler_class = _HANDLERS[name]
    except KeyError:
        raise ValueError(f"Unknown handler {name!r}, expected one of {sorted(_HANDLERS)}") from None
    return handler_class(**kwargs)


def registered_handlers():
    return dict(_HANDLERS)


class Handler(ABC):
    """Capability contract for a single transfer handle.

    A handler owns one provider resource, tracks the options applied to it
    and keeps the last raw response payload.
    """

    def __init__(self):
        self._resource = None
        self._options = {}
        self._response = None
        self._uri = None
        self._method = None
        self._transfer = None

    def has_resource(self) -> bool:
        return self._resource is not None

    def resource(self):
        """Return the provider resource, raising NoResource if there is none"""
        if self._resource is None:
            raise NoResource(f"{type(self).__name__} has no transport resource")
        return self._resource

    @property
    def options(self):
        return dict(self._options)

    def get_option(self, opt, default=None):
        return self._options.get(opt, default)

    def has_option(self, opt) -> bool:
        return opt in self._options

    def has_response(self) -> bool:
        return self._response is not None

    @property
    def uri(self):
        return self._uri

    @property
    def method(self):
        return self._method

    @property
    def prepared(self):
        """The PreparedTransfer from the last prepare() call"""
        return self._transfer

    def _translate(self, request, auth=None):
        """Work out the method, final URI, header lines and body for a request.

        GET requests with untyped or url-encoded field data carry it in the
        query string; everything else carries it in the body.
        """
        if not request.has_uri():
            raise InvalidState("The request has no URI")

        if auth is not None:
            request.add_header(auth.create_auth_header())

        query_string = request.query.prepare_query_string() if request.has_query() else None
        body = None
        skip = ()

        if request.has_data():
            if not request.is_data_prepared():
                request.prepare_data()
            if request.is_get() and (not request.has_request_type() or request.is_url_encoded()):
                data_query = request.data.query_string
                query_string = f"{query_string}&{data_query}" if query_string else data_query
                skip = ("Content-Type", "Content-Length")
            else:
                body = request.data_content
                if not request.has_header("Content-Type"):
                    request.add_header("Content-Type", URLENCODED)
                request.add_header("Content-Length", len(body))
        elif request.has_body_content():
            body = request.body_content
            request.add_header("Content-Length", request.body_content_length)

        if body is None and "Content-Length" not in skip:
            skip += ("Content-Length",)

        uri = request.uri
        if query_string:
            uri += ("&" if "?" in uri else "?") + query_string

        self._transfer = PreparedTransfer(request.method, uri, request.header_lines(skip), body)
        return self._transfer

    @abstractmethod
    def set_option(self, opt, value):
        """Apply an option to the provider resource"""

    @abstractmethod
    def prepare(self, request, auth=None, force_custom_method=False, clear=True):
        """Translate a Request into provider options"""

    @abstractmethod
    def send(self):
        """Run the transfer and return the Response"""

    @abstractmethod
    def parse_response(self):
        """Build a Response from the last raw payload"""

    @abstractmethod
    def reset(self, restore_defaults=True):
        """Clear options and response state"""

    @abstractmethod
    def disconnect(self):
        """Release the provider resource"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def __repr__(self):
        state = "connected" if self.has_resource() else "disconnected"
        return f"<{type(self).__name__} [{self._method} {self._uri}] {state}>"
