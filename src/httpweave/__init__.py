"""
httpweave - one HTTP client API over interchangeable transports

Requests are described once and sent through libcurl (single or multiplexed
handles) or urllib3 streams. Asynchronous sends return promises.
"""

import logging

__version__ = "0.1.0"
__license__ = "MIT"

from httpweave._auth import Auth
from httpweave._client import (
    Client,
    delete,
    get,
    head,
    options,
    patch,
    post,
    put,
    request,
)
from httpweave._config import ClientConfig
from httpweave._curl import Curl
from httpweave._data import Data, build_query
from httpweave._errors import (
    ConnectionError,
    IncompleteTransfer,
    InvalidState,
    MissingSelector,
    NoResource,
    RequestException,
    Timeout,
    TransferError,
    UnfulfilledPromise,
    UnsupportedOption,
)
from httpweave._handler import Handler, PreparedTransfer, create_handler, register_handler, registered_handlers
from httpweave._multi import CompletionInfo, CurlMulti, ResponseSummary, StepResult
from httpweave._promise import (
    CANCELLED,
    FULFILLED,
    PENDING,
    REJECTED,
    ChainedPromise,
    Promise,
    PromiseState,
)
from httpweave._request import Request
from httpweave._response import Response
from httpweave._server import RequestInput, ServerRequest, ServerResponse
from httpweave._stream import Stream

from httpweave._async import AsyncClient
from httpweave._async import get as async_get
from httpweave._async import post as async_post
from httpweave._async import request as async_request

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Client",
    "ClientConfig",
    "Request",
    "Response",
    "Data",
    "Auth",
    "Handler",
    "PreparedTransfer",
    "Curl",
    "Stream",
    "CurlMulti",
    "StepResult",
    "CompletionInfo",
    "ResponseSummary",
    "Promise",
    "ChainedPromise",
    "PromiseState",
    "PENDING",
    "FULFILLED",
    "REJECTED",
    "CANCELLED",
    "RequestInput",
    "ServerRequest",
    "ServerResponse",
    "RequestException",
    "InvalidState",
    "NoResource",
    "UnsupportedOption",
    "MissingSelector",
    "TransferError",
    "ConnectionError",
    "Timeout",
    "UnfulfilledPromise",
    "IncompleteTransfer",
    "register_handler",
    "create_handler",
    "registered_handlers",
    "build_query",
    "request",
    "get",
    "post",
    "put",
    "delete",
    "head",
    "patch",
    "options",
    "AsyncClient",
    "async_request",
    "async_get",
    "async_post",
]
