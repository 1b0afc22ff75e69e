"""
Stream transport handler built on urllib3

Requests are described by nested context options, ``{"http": {...},
"ssl": {...}}``, which are turned into a urllib3 PoolManager request on send.
The handler's resource is the open urllib3 response, so it only exists after
a transfer.
"""

import logging

import urllib3
from urllib3.exceptions import (
    HTTPError,
    MaxRetryError,
    NewConnectionError,
    ProtocolError,
    SSLError,
)
from urllib3.exceptions import TimeoutError as URLLibTimeoutError

from ._errors import ConnectionError, InvalidState, Timeout, TransferError, UnsupportedOption
from ._handler import Handler, register_handler
from ._parser import parse_headers
from ._response import Response

logger = logging.getLogger(__name__)

_WRAPPERS = ("http", "ssl")


def transfer_error(exc):
    """Map a urllib3 exception to the matching TransferError subclass"""
    reason = exc
    if isinstance(exc, MaxRetryError) and exc.reason is not None:
        reason = exc.reason
    message = str(reason)

    if isinstance(reason, (NewConnectionError, SSLError, ProtocolError)):
        return ConnectionError(None, message)
    if isinstance(reason, URLLibTimeoutError):
        return Timeout(None, message)
    return TransferError(None, message)


def _header_dict(lines):
    headers = urllib3.HTTPHeaderDict()
    for line in lines:
        name, sep, value = line.partition(":")
        if sep:
            headers.add(name.strip(), value.strip())
    return headers


class Stream(Handler):
    """Single transfer handle driven by urllib3"""

    def __init__(self, options=None):
        super().__init__()
        self._context = None
        self._response_headers = []
        self._error = (0, "")
        if options:
            self.set_options(options)

    # Context options

    def set_option(self, opt, value):
        """Merge ``value`` into the ``http`` or ``ssl`` context options"""
        if opt not in _WRAPPERS:
            raise UnsupportedOption(opt, "Stream handlers only accept 'http' and 'ssl' context options")
        if not isinstance(value, dict):
            raise UnsupportedOption(opt, "Context options must be given as a dict")

        merged = dict(self._options.get(opt, {}))
        merged.update(value)
        self._options[opt] = merged
        self._drop_context()
        return self

    def set_options(self, options):
        for opt, value in options.items():
            self.set_option(opt, value)
        return self

    def remove_option(self, opt, key=None):
        if key is None:
            self._options.pop(opt, None)
        elif opt in self._options:
            self._options[opt].pop(key, None)
        self._drop_context()
        return self

    def set_verify_peer(self, verify=True):
        return self.set_option("ssl", {"verify_peer": verify})

    def allow_self_signed(self, allow=True):
        return self.set_option("ssl", {"allow_self_signed": allow})

    def set_user_agent(self, user_agent):
        return self.set_option("http", {"user_agent": user_agent})

    def set_timeout(self, seconds):
        return self.set_option("http", {"timeout": seconds})

    def set_follow_location(self, follow=True, max_redirects=20):
        return self.set_option("http", {"follow_location": follow, "max_redirects": max_redirects})

    def create_context(self):
        """Build the PoolManager for the current ``ssl`` options"""
        ssl = self._options.get("ssl", {})
        verify = ssl.get("verify_peer", True) and not ssl.get("allow_self_signed", False)

        kwargs = {"cert_reqs": "CERT_REQUIRED" if verify else "CERT_NONE"}
        if not verify:
            kwargs["assert_hostname"] = False
        if ssl.get("cafile"):
            kwargs["ca_certs"] = ssl["cafile"]

        self._drop_context()
        self._context = urllib3.PoolManager(**kwargs)
        return self._context

    # Transfer

    def prepare(self, request, auth=None, force_custom_method=False, clear=True):
        transfer = self._translate(request, auth)

        headers = transfer.headers
        if not clear:
            prior = self._options.get("http", {}).get("header", [])
            headers = list(prior) + [line for line in headers if line not in prior]

        http = {"method": transfer.method, "header": headers}
        if transfer.body is not None:
            http["content"] = transfer.body
        elif "http" in self._options:
            self._options["http"].pop("content", None)
        self.set_option("http", http)

        self._uri = transfer.uri
        self._method = transfer.method
        self._response = None

        logger.debug("Prepared %s %s", transfer.method, transfer.uri)
        return self

    def _retries(self, http):
        if not http.get("follow_location", True):
            return False
        return urllib3.Retry(
            total=None,
            connect=0,
            read=0,
            status=0,
            other=0,
            redirect=http.get("max_redirects", 20),
            raise_on_redirect=False,
        )

    def send(self):
        if self._uri is None:
            raise InvalidState("The stream handler has not been prepared")

        http = self._options.get("http", {})
        pool = self._context or self.create_context()
        headers = _header_dict(http.get("header", []))
        if http.get("user_agent") and "User-Agent" not in headers:
            headers["User-Agent"] = http["user_agent"]

        kwargs = {}
        if http.get("timeout") is not None:
            kwargs["timeout"] = http["timeout"]

        logger.debug("Sending %s %s", self._method, self._uri)
        try:
            response = pool.request(
                self._method,
                self._uri,
                body=http.get("content"),
                headers=headers,
                retries=self._retries(http),
                redirect=http.get("follow_location", True),
                preload_content=False,
                decode_content=False,
                **kwargs,
            )
            try:
                body = response.read(decode_content=False)
            finally:
                response.release_conn()
        except HTTPError as exc:
            error = transfer_error(exc)
            self._error = (error.code, error.message)
            raise error from exc

        version = response.version or 11
        status_line = f"HTTP/{version // 10}.{version % 10} {response.status} {response.reason or ''}"
        self._resource = response
        self._response_headers = [status_line.strip()] + [
            f"{name}: {value}" for name, value in response.headers.iteritems()
        ]
        self._response = body
        self._error = (0, "")
        return self.parse_response()

    def parse_response(self):
        response = Response()
        parsed = parse_headers(self._response_headers)
        if parsed.version:
            response.version = parsed.version
        if parsed.code is not None:
            response.set_code(parsed.code, parsed.message)
        response.add_headers(parsed.headers)
        response.set_body(self._response or b"")

        if response.has_header("Content-Encoding"):
            response.decode_body_content()
        return response

    @property
    def response_headers(self):
        return list(self._response_headers)

    @property
    def error_number(self):
        return self._error[0]

    @property
    def error_message(self):
        return self._error[1]

    def reset(self, restore_defaults=True):
        """Clear context options and response state.

        Streams carry no baseline options, so ``restore_defaults`` has
        nothing to re-apply.
        """
        self._options = {}
        self._drop_context()
        self._resource = None
        self._response = None
        self._response_headers = []
        self._uri = None
        self._method = None
        return self

    def _drop_context(self):
        if self._context is not None:
            self._context.clear()
            self._context = None

    def disconnect(self):
        self._drop_context()
        self._resource = None
        self._options = {}
        self._response = None
        self._response_headers = []
        self._uri = None


register_handler("stream", Stream)
