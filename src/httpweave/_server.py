"""
Server side request parsing and response writing

The request is built from an explicit :class:`RequestInput`, so nothing is
read from process-wide state. :meth:`RequestInput.from_handler` adapts an
``http.server`` request handler; :class:`ServerResponse` writes back to one.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlsplit

from urllib3 import HTTPHeaderDict

from ._errors import InvalidState
from ._parser import (
    MULTIPART,
    decode_chunked,
    decode_data,
    encode_data,
    parse_data_by_content_type,
    parse_multipart,
    parse_query,
)
from ._response import Response

logger = logging.getLogger(__name__)


@dataclass
class RequestInput:
    """Everything a ServerRequest needs to know about an incoming request"""

    method: str = "GET"
    uri: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    remote_addr: Optional[str] = None
    base_path: Optional[str] = None

    @classmethod
    def from_handler(cls, handler, base_path=None):
        """Read method, path, headers and body from a BaseHTTPRequestHandler"""
        length = int(handler.headers.get("Content-Length", 0) or 0)
        body = handler.rfile.read(length) if length else b""
        return cls(
            method=handler.command,
            uri=handler.path,
            headers=dict(handler.headers.items()),
            body=body,
            remote_addr=handler.client_address[0] if handler.client_address else None,
            base_path=base_path,
        )


class ServerRequest:
    """Parsed incoming request: path segments, query, headers and body data"""

    def __init__(self, request_input: RequestInput):
        self._input = request_input
        self.method = request_input.method.upper()
        self.headers = HTTPHeaderDict(request_input.headers)

        parts = urlsplit(request_input.uri)
        path = parts.path or "/"
        base_path = (request_input.base_path or "").rstrip("/")
        if base_path and path.startswith(base_path):
            path = path[len(base_path):] or "/"

        self.base_path = base_path
        self.path = path
        self.segments = [segment for segment in path.split("/") if segment]
        self.query = parse_query(parts.query)
        self.raw_body = request_input.body or b""
        self.parsed_data = None
        self.files = {}

        if self.raw_body:
            self._parse_body()

    def _parse_body(self):
        chunked = "chunked" in self.headers.get("Transfer-Encoding", "").lower()
        encoding = self.headers.get("Content-Encoding")
        content_type = self.content_type

        if content_type and content_type.lower().startswith(MULTIPART):
            body = decode_data(decode_chunked(self.raw_body) if chunked else self.raw_body, encoding)
            self.parsed_data, self.files = parse_multipart(body, content_type)
        elif content_type:
            parsed = parse_data_by_content_type(self.raw_body, content_type, encoding, chunked)
            if not isinstance(parsed, bytes):
                self.parsed_data = parsed

    @property
    def content_type(self):
        return self.headers.get("Content-Type")

    def is_get(self):
        return self.method == "GET"

    def is_head(self):
        return self.method == "HEAD"

    def is_post(self):
        return self.method == "POST"

    def is_put(self):
        return self.method == "PUT"

    def is_patch(self):
        return self.method == "PATCH"

    def is_delete(self):
        return self.method == "DELETE"

    def is_options(self):
        return self.method == "OPTIONS"

    def get_segment(self, index):
        try:
            return self.segments[index]
        except IndexError:
            return None

    def get_query(self, key=None, default=None):
        if key is None:
            return dict(self.query)
        return self.query.get(key, default)

    def get_header(self, name, default=None):
        return self.headers.get(name, default)

    def get_data(self, key=None, default=None):
        if key is None:
            return self.parsed_data
        if isinstance(self.parsed_data, dict):
            return self.parsed_data.get(key, default)
        return default

    def has_files(self):
        return bool(self.files)

    @property
    def ip(self):
        forwarded = self.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return self._input.remote_addr

    def __repr__(self):
        return f"<ServerRequest [{self.method} {self.path}]>"


class ServerResponse(Response):
    """Outgoing response written to an ``http.server`` request handler.

    A ``Content-Encoding`` header (gzip, deflate, base64, ...) is applied to
    the body when it is rendered or sent.
    """

    def __init__(self, code=200, headers=None, body=b"", version="1.1", message=None):
        super().__init__(version=version, code=code, message=message, headers=headers, body=body)
        self._headers_sent = False

    @classmethod
    def redirect(cls, url, code=302):
        if not 300 <= int(code) < 400:
            raise ValueError(f"{code} is not a redirect status code")
        return cls(code, headers={"Location": url})

    @property
    def status_line(self):
        return f"HTTP/{self.version} {self.code} {self.message or ''}".rstrip()

    @property
    def headers_sent(self):
        return self._headers_sent

    def prepare_body(self, length=False):
        """Return the body with its content encoding applied.

        Args:
            length: Set ``Content-Length`` to the size of the encoded body
        """
        body = self.body
        encoding = self.headers.get("Content-Encoding")
        if encoding:
            body = encode_data(body, encoding)
        if length:
            self.headers.pop("Content-Length", None)
            self.headers["Content-Length"] = str(len(body))
        return body

    def get_headers_as_string(self, status=None, eol="\r\n"):
        """Render the headers, preceded by ``status`` (True for the status line)"""
        lines = []
        if status is True:
            lines.append(self.status_line)
        elif status:
            lines.append(status)
        lines.extend(f"{name}: {value}" for name, value in self.headers.iteritems())
        return eol.join(lines) + eol

    def send_headers(self, handler):
        if self._headers_sent:
            raise InvalidState("The headers have already been sent")
        handler.send_response(self.code, self.message)
        for name, value in self.headers.iteritems():
            handler.send_header(name, value)
        handler.end_headers()
        self._headers_sent = True

    def send(self, handler, code=None, headers=None, length=True):
        """Write the status line, headers and body to ``handler``"""
        if code is not None:
            self.set_code(code)
        if headers:
            self.add_headers(headers)
        body = self.prepare_body(length)
        self.send_headers(handler)
        if handler.command != "HEAD" and body:
            handler.wfile.write(body)
        logger.debug("Sent %s %s (%d bytes)", self.code, self.message, len(body))

    def render(self):
        body = self.prepare_body()
        return (self.get_headers_as_string(True) + "\r\n").encode("latin-1") + body

    def __repr__(self):
        return f"<ServerResponse [{self.code}]>"
