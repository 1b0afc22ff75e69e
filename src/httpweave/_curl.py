"""
libcurl transport handler built on pycurl
"""

import logging
from io import BytesIO

import pycurl

from ._errors import ConnectionError, Timeout, TransferError, UnsupportedOption
from ._handler import Handler, register_handler
from ._parser import parse_headers
from ._response import Response

logger = logging.getLogger(__name__)

# libcurl codes for resolve (5, 6), connect (7), TLS (35, 51, 60) and
# connection-level I/O failures (52, 55, 56)
_CONNECTION_CODES = frozenset({5, 6, 7, 35, 51, 52, 55, 56, 60})
_TIMEOUT_CODES = frozenset({28})


def transfer_error(code, message):
    """Map a libcurl error code to the matching TransferError subclass"""
    if code in _TIMEOUT_CODES:
        return Timeout(code, message)
    if code in _CONNECTION_CODES:
        return ConnectionError(code, message)
    return TransferError(code, message)


def _discard(chunk):
    return None


class Curl(Handler):
    """Single transfer handle backed by ``pycurl.Curl``.

    The response (headers and body) is collected in memory, the equivalent of
    libcurl's "return transfer" mode. Options are keyed by pycurl constants.
    """

    def __init__(self, options=None):
        super().__init__()
        self._resource = pycurl.Curl()
        self._buffer = BytesIO()
        self._header_size = 0
        self._error = (0, "")

        self._apply_defaults()
        if options:
            self.set_options(options)

    def _apply_defaults(self):
        self.set_return_header(True)
        self.set_return_transfer(True)

    # Options

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

    def remove_option(self, opt):
        resource = self.resource()
        try:
            resource.unsetopt(opt)
        except (pycurl.error, TypeError) as exc:
            raise UnsupportedOption(opt, str(exc)) from exc
        self._options.pop(opt, None)
        return self

    def set_return_header(self, header=True):
        return self.set_option(pycurl.HEADER, 1 if header else 0)

    def is_return_header(self):
        return bool(self._options.get(pycurl.HEADER))

    def set_return_transfer(self, transfer=True):
        return self.set_option(pycurl.WRITEFUNCTION, self._buffer.write if transfer else _discard)

    def is_return_transfer(self):
        return self._options.get(pycurl.WRITEFUNCTION) == self._buffer.write

    def set_verify_peer(self, verify=True):
        return self.set_option(pycurl.SSL_VERIFYPEER, 1 if verify else 0)

    def allow_self_signed(self, allow=True):
        self.set_option(pycurl.SSL_VERIFYPEER, 0 if allow else 1)
        return self.set_option(pycurl.SSL_VERIFYHOST, 0 if allow else 2)

    def set_user_agent(self, user_agent):
        return self.set_option(pycurl.USERAGENT, user_agent)

    def set_timeout(self, seconds):
        return self.set_option(pycurl.TIMEOUT_MS, int(seconds * 1000))

    def set_follow_location(self, follow=True, max_redirects=20):
        self.set_option(pycurl.FOLLOWLOCATION, 1 if follow else 0)
        return self.set_option(pycurl.MAXREDIRS, max_redirects)

    # Transfer

    def prepare(self, request, auth=None, force_custom_method=False, clear=True):
        """Apply method, URI, headers and body of ``request`` to the handle.

        Args:
            request: Request to translate
            auth: Optional Auth whose header is added to the request
            force_custom_method: Always send the method as CUSTOMREQUEST
            clear: Replace earlier custom headers instead of merging with them
        """
        transfer = self._translate(request, auth)
        method = transfer.method

        if method == "GET":
            self.set_option(pycurl.HTTPGET, 1)
        elif method == "POST":
            self.set_option(pycurl.POST, 1)
        elif method == "HEAD":
            self.set_option(pycurl.NOBODY, 1)

        if force_custom_method or method not in ("GET", "POST", "HEAD") or (
            transfer.body is not None and method != "POST"
        ):
            self.set_option(pycurl.CUSTOMREQUEST, method)
        elif pycurl.CUSTOMREQUEST in self._options:
            self.remove_option(pycurl.CUSTOMREQUEST)

        if transfer.body is not None:
            self.set_option(pycurl.POSTFIELDS, transfer.body)

        headers = transfer.headers
        if not clear:
            prior = self._options.get(pycurl.HTTPHEADER, [])
            headers = list(prior) + [line for line in headers if line not in prior]
        if headers or pycurl.HTTPHEADER in self._options:
            self.set_option(pycurl.HTTPHEADER, headers)

        self.set_option(pycurl.URL, transfer.uri)
        self._uri = transfer.uri
        self._method = method
        self._response = None

        logger.debug("Prepared %s %s", method, transfer.uri)
        return self

    def send(self):
        resource = self.resource()
        self.clear_content()

        logger.debug("Sending %s %s", self._method, self._uri)
        try:
            resource.perform()
        except pycurl.error as exc:
            code = exc.args[0]
            message = exc.args[1] if len(exc.args) > 1 else str(exc)
            self._error = (code, message)
            raise transfer_error(code, message) from exc

        self._error = (0, "")
        self.set_response(self.content())
        return self.parse_response()

    def content(self):
        """Raw payload collected by the handle so far"""
        return self._buffer.getvalue()

    def clear_content(self):
        self._buffer.seek(0)
        self._buffer.truncate()

    def set_response(self, raw):
        """Store a raw payload for :meth:`parse_response`"""
        self._response = raw
        self._header_size = self.get_info(pycurl.HEADER_SIZE) if self.has_resource() else 0
        return self

    def parse_response(self):
        response = Response()
        raw = self._response if self._response is not None else b""

        if self.is_return_header():
            parsed = parse_headers(raw[: self._header_size])
            if parsed.version:
                response.version = parsed.version
            if parsed.code is not None:
                response.set_code(parsed.code, parsed.message)
            response.add_headers(parsed.headers)
            response.set_body(raw[self._header_size :])
        else:
            response.set_body(raw)
            code = self.get_info(pycurl.RESPONSE_CODE) if self.has_resource() else 0
            if code:
                response.set_code(code)

        if response.has_header("Content-Encoding"):
            response.decode_body_content()
        return response

    def get_info(self, opt=None):
        """Return one ``pycurl`` info value, or a dict of the common ones"""
        resource = self.resource()
        if opt is not None:
            return resource.getinfo(opt)
        return {
            "url": resource.getinfo(pycurl.EFFECTIVE_URL),
            "http_code": resource.getinfo(pycurl.RESPONSE_CODE),
            "header_size": resource.getinfo(pycurl.HEADER_SIZE),
            "content_type": resource.getinfo(pycurl.CONTENT_TYPE),
            "total_time": resource.getinfo(pycurl.TOTAL_TIME),
        }

    @property
    def error_number(self):
        return self._error[0]

    @property
    def error_message(self):
        return self._error[1]

    @staticmethod
    def version():
        return pycurl.version

    def reset(self, restore_defaults=True):
        self.resource().reset()
        self._options = {}
        self._response = None
        self._header_size = 0
        self.clear_content()
        if restore_defaults:
            self._apply_defaults()
        return self

    def disconnect(self):
        if self._resource is not None:
            self._resource.close()
            self._resource = None
            logger.debug("Closed curl handle for %s", self._uri)
        self._options = {}
        self._response = None


register_handler("curl", Curl)
