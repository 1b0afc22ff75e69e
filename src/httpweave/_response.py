"""
Response model
"""

import json
from http import HTTPStatus
from typing import Optional

from urllib3 import HTTPHeaderDict

from ._parser import decode_data, parse_data_by_content_type


class Response:
    """HTTP response returned by a handler"""

    def __init__(self, version="1.1", code=None, message=None, headers=None, body=b""):
        self.version = version
        self.code: Optional[int] = None
        self.message: Optional[str] = None
        self.headers = HTTPHeaderDict()
        self.body = b""

        if code is not None:
            self.set_code(code, message)
        if headers:
            self.add_headers(headers)
        if body:
            self.set_body(body)

    def set_code(self, code, message=None):
        self.code = int(code)
        if message is None:
            try:
                message = HTTPStatus(self.code).phrase
            except ValueError:
                message = None
        self.message = message
        return self

    def set_body(self, body):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.body = bytes(body) if body is not None else b""
        return self

    def add_headers(self, headers):
        items = headers.iteritems() if isinstance(headers, HTTPHeaderDict) else headers.items()
        for name, value in items:
            self.headers.add(name, value)
        return self

    def has_header(self, name):
        return name in self.headers

    def get_header(self, name, default=None):
        return self.headers.get(name, default)

    @property
    def status_code(self):
        return self.code

    @property
    def reason(self):
        return self.message

    @property
    def text(self):
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError:
            return self.body.decode("latin-1", errors="replace")

    def json(self, **kwargs):
        return json.loads(self.text, **kwargs)

    @property
    def content_type(self):
        return self.headers.get("Content-Type")

    def is_chunked(self):
        return "chunked" in self.headers.get("Transfer-Encoding", "").lower()

    def decode_body_content(self, chunked=False):
        """Decode the body in place according to ``Content-Encoding``"""
        encoding = self.headers.get("Content-Encoding")
        self.body = decode_data(self.body, encoding, chunked)
        return self.body

    def get_parsed_response(self):
        """Return the body parsed by its content type (JSON/XML/form become dicts)"""
        if not self.body:
            return None
        return parse_data_by_content_type(self.body, self.content_type)

    # Status classes

    def _status_class(self):
        return self.code // 100 if self.code else None

    def is_informational(self):
        return self._status_class() == 1

    def is_success(self):
        return self._status_class() in (1, 2, 3)

    def is_redirect(self):
        return self._status_class() == 3

    def is_error(self):
        return self._status_class() in (4, 5)

    def is_client_error(self):
        return self._status_class() == 4

    def is_server_error(self):
        return self._status_class() == 5

    def __eq__(self, other):
        if not isinstance(other, Response):
            return NotImplemented
        return (
            self.version == other.version
            and self.code == other.code
            and self.message == other.message
            and list(self.headers.iteritems()) == list(other.headers.iteritems())
            and self.body == other.body
        )

    def __repr__(self):
        return f"<Response [{self.code}]>"
