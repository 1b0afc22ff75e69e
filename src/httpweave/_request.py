"""
Outgoing request model
"""

import json
from typing import Optional

from urllib3 import HTTPHeaderDict
from urllib3.filepost import encode_multipart_formdata

from ._data import Data
from ._parser import JSON, MULTIPART, URLENCODED, XML

METHODS = ("GET", "HEAD", "POST", "PUT", "DELETE", "CONNECT", "OPTIONS", "TRACE", "PATCH")


class Request:
    """HTTP request: method, URI, headers, field data, query and raw body.

    Field data is turned into body content by :meth:`prepare_data` according
    to the request type (JSON, url-encoded, multipart). A raw body set with
    :meth:`set_body` is sent as is.
    """

    def __init__(
        self,
        uri: Optional[str] = None,
        method: str = "GET",
        headers=None,
        data=None,
        query=None,
        type: Optional[str] = None,
        body=None,
    ):
        self._method = "GET"
        self._uri = uri
        self._headers = HTTPHeaderDict()
        self._data = Data()
        self._query = Data()
        self._request_type = None
        self._body = None
        self._data_content = None

        self.set_method(method)
        if headers:
            self.add_headers(headers)
        if data is not None:
            self.set_data(data)
        if query is not None:
            self.set_query(query)
        if type is not None:
            self.set_request_type(type)
        if body is not None:
            self.set_body(body)

    # Method and URI

    @property
    def method(self) -> str:
        return self._method

    def set_method(self, method: str):
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        self._method = method
        return self

    def is_get(self):
        return self._method == "GET"

    def is_head(self):
        return self._method == "HEAD"

    def is_post(self):
        return self._method == "POST"

    def is_put(self):
        return self._method == "PUT"

    def is_patch(self):
        return self._method == "PATCH"

    def is_delete(self):
        return self._method == "DELETE"

    @property
    def uri(self) -> Optional[str]:
        return self._uri

    def set_uri(self, uri: str):
        self._uri = uri
        return self

    def has_uri(self):
        return bool(self._uri)

    # Headers

    @property
    def headers(self) -> HTTPHeaderDict:
        return self._headers

    def add_header(self, name, value=None):
        """Set a header, replacing any previous value.

        ``name`` may also be a ``(name, value)`` tuple as returned by
        :meth:`Auth.create_auth_header`.
        """
        if isinstance(name, tuple):
            name, value = name
        self._headers[name] = str(value)
        return self

    def add_headers(self, headers):
        items = headers.items() if hasattr(headers, "items") else headers
        for name, value in items:
            self.add_header(name, value)
        return self

    def has_header(self, name):
        return name in self._headers

    def get_header(self, name, default=None):
        return self._headers.get(name, default)

    def has_headers(self):
        return len(self._headers) > 0

    def remove_header(self, name):
        self._headers.discard(name)
        return self

    def remove_all_headers(self):
        self._headers = HTTPHeaderDict()
        return self

    def header_lines(self, skip=()):
        """Flatten the headers into ``Name: value`` lines"""
        skip = {name.lower() for name in skip}
        return [f"{name}: {value}" for name, value in self._headers.iteritems() if name.lower() not in skip]

    # Field data

    @property
    def data(self) -> Data:
        return self._data

    def set_data(self, data):
        self._data = data if isinstance(data, Data) else Data(data)
        self._data_content = None
        return self

    def add_data(self, name, value=None):
        self._data.add_data(name, value)
        self._data_content = None
        return self

    def has_data(self, key=None):
        return self._data.has_data(key)

    def get_data(self, key=None):
        return self._data.get_data(key)

    def remove_data(self, key):
        self._data.remove_data(key)
        self._data_content = None
        return self

    def remove_all_data(self):
        self._data.remove_all_data()
        self._data_content = None
        return self

    def is_data_prepared(self):
        return self._data.prepared

    def prepare_data(self):
        """Encode the field data into body content.

        Typed requests also receive matching ``Content-Type`` and
        ``Content-Length`` headers.
        """
        if not self._data.has_data():
            self._data_content = None
            return self

        fields = self._data.get_data()
        if self.is_json():
            content = json.dumps(fields).encode("utf-8")
        elif self.is_multipart():
            content, content_type = encode_multipart_formdata(fields)
            self.add_header("Content-Type", content_type)
        else:
            content = self._data.prepare_query_string().encode("utf-8")

        if self.has_request_type():
            self.add_header("Content-Length", len(content))

        self._data_content = content
        self._data.prepared = True
        return self

    def has_data_content(self):
        return self._data_content is not None

    @property
    def data_content(self) -> Optional[bytes]:
        return self._data_content

    @property
    def data_content_length(self):
        return len(self._data_content) if self._data_content is not None else 0

    # Query

    @property
    def query(self) -> Data:
        return self._query

    def set_query(self, query):
        self._query = query if isinstance(query, Data) else Data(query)
        return self

    def add_query(self, name, value=None):
        self._query.add_data(name, value)
        return self

    def has_query(self, key=None):
        return self._query.has_data(key)

    def remove_query(self, key):
        self._query.remove_data(key)
        return self

    def remove_all_query(self):
        self._query.remove_all_data()
        return self

    # Request type

    def set_request_type(self, request_type, add_header=True):
        self._request_type = request_type
        if add_header and request_type != MULTIPART:
            self.add_header("Content-Type", request_type)
        return self

    def get_request_type(self):
        return self._request_type

    def has_request_type(self):
        return self._request_type is not None

    def remove_request_type(self, remove_header=True):
        self._request_type = None
        if remove_header:
            self.remove_header("Content-Type")
        return self

    def create_as_json(self):
        return self.set_request_type(JSON)

    def create_as_url_encoded(self):
        return self.set_request_type(URLENCODED)

    def create_as_xml(self):
        return self.set_request_type(XML)

    def create_as_multipart(self):
        return self.set_request_type(MULTIPART)

    def is_json(self):
        return self._request_type is not None and "json" in self._request_type

    def is_url_encoded(self):
        return self._request_type is not None and URLENCODED in self._request_type

    def is_xml(self):
        return self._request_type is not None and "xml" in self._request_type

    def is_multipart(self):
        return self._request_type is not None and MULTIPART in self._request_type

    # Raw body

    def set_body(self, body):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._body = bytes(body) if body is not None else None
        return self

    def has_body_content(self):
        return self._body is not None

    @property
    def body_content(self) -> Optional[bytes]:
        return self._body

    @property
    def body_content_length(self):
        return len(self._body) if self._body is not None else 0

    def remove_body(self):
        self._body = None
        return self

    def __repr__(self):
        return f"<Request [{self._method} {self._uri}]>"
