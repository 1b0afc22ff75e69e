"""
High level client binding a Request, an optional Auth and a handler
"""

import logging
import mimetypes
import os
from urllib.parse import urlsplit

from ._auth import Auth
from ._config import ClientConfig
from ._curl import Curl
from ._errors import InvalidState
from ._handler import Handler, create_handler
from ._multi import CurlMulti
from ._promise import Promise
from ._request import Request

logger = logging.getLogger(__name__)

OPTIONS = (
    "base_uri",
    "method",
    "headers",
    "query",
    "data",
    "files",
    "type",
    "body",
    "user_agent",
    "verify_peer",
    "allow_self_signed",
    "follow_location",
    "max_redirects",
    "force_custom_method",
    "timeout",
    "async_",
    "auto",
)


class Client:
    """HTTP client.

    Options (all optional):
        base_uri: Prefix for relative request URIs
        method: Default HTTP method
        headers: Dict of request headers
        query: Dict of query parameters
        data: Dict of field data
        files: Dict of field name -> file path, sent as multipart uploads
        type: Request content type (JSON, url-encoded, multipart, ...)
        body: Raw request body
        user_agent, verify_peer, allow_self_signed, follow_location,
        max_redirects, timeout: Transport settings
        force_custom_method: Send the method as a custom request (curl)
        async_: ``send()`` returns a Promise
        auto: ``send()`` returns the parsed response body
    """

    def __init__(self, request=None, handler=None, auth=None, config=None, **options):
        unknown = set(options) - set(OPTIONS)
        if unknown:
            raise TypeError(f"Unknown client options: {', '.join(sorted(unknown))}")

        self.config = config if config is not None else ClientConfig()
        self.options = {**self.config.to_options(), **options}
        self.request = Request(request) if isinstance(request, str) else request
        self.auth = auth
        self.response = None
        self.multi = None

        if handler is None:
            handler = self.config.handler
        self.handler = create_handler(handler) if isinstance(handler, str) else handler
        if self.handler is not None and not isinstance(self.handler, Handler):
            raise TypeError(f"{self.handler!r} is not a Handler")

    # Options

    def set_option(self, name, value):
        if name not in OPTIONS:
            raise TypeError(f"Unknown client option: {name}")
        self.options[name] = value
        return self

    def get_option(self, name, default=None):
        return self.options.get(name, default)

    def has_option(self, name):
        return name in self.options

    def remove_option(self, name):
        self.options.pop(name, None)
        return self

    def set_auth(self, auth):
        self.auth = auth
        return self

    def set_response(self, response):
        self.response = response
        return self

    # Preparation

    def _full_uri(self, uri):
        base = self.options.get("base_uri")
        if base and (uri is None or not uri.startswith(base)):
            return base + (uri or "")
        return uri

    def _file_fields(self):
        fields = {}
        for index, (name, path) in enumerate(self.options.get("files", {}).items()):
            if isinstance(name, int):
                name = f"file{index + 1}"
            content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
            with open(path, "rb") as fp:
                fields[name] = (os.path.basename(path), fp.read(), content_type)
        return fields

    def prepare(self, uri=None, method=None):
        """Build the Request from the client options and reset the handler"""
        if self.request is None and uri is None and "base_uri" not in self.options:
            raise InvalidState("There is no request URI to send")

        method = method or self.options.get("method")

        if self.request is not None:
            if uri is not None:
                self.request.set_uri(self._full_uri(uri))
            elif self.request.has_uri():
                self.request.set_uri(self._full_uri(self.request.uri))
            if method is not None:
                self.request.set_method(method)
        else:
            self.request = Request(self._full_uri(uri), method or "GET")

        if "type" in self.options:
            self.request.set_request_type(self.options["type"])
        if self.options.get("headers"):
            self.request.add_headers(self.options["headers"])
        if "query" in self.options:
            self.request.set_query(self.options["query"])

        data = dict(self.options.get("data") or {})
        if self.options.get("files"):
            data.update(self._file_fields())
            if not self.request.is_multipart():
                self.request.create_as_multipart()
        if data:
            self.request.set_data(data)
        if "body" in self.options:
            self.request.set_body(self.options["body"])

        if self.handler is None:
            self.handler = create_handler(self.config.handler)
        elif isinstance(self.handler, Curl) and not self.handler.has_resource():
            self.handler = Curl()
        else:
            self.handler.reset()
        self._configure_handler()
        return self

    def _configure_handler(self):
        options = self.options
        if "user_agent" in options:
            self.handler.set_user_agent(options["user_agent"])
        if "verify_peer" in options:
            self.handler.set_verify_peer(bool(options["verify_peer"]))
        if options.get("allow_self_signed"):
            self.handler.allow_self_signed(True)
        if "follow_location" in options:
            self.handler.set_follow_location(
                bool(options["follow_location"]), options.get("max_redirects", 20)
            )
        if options.get("timeout") is not None:
            self.handler.set_timeout(options["timeout"])

    def prepare_handler(self):
        """Apply the prepared Request (and Auth) to the handler"""
        self.handler.prepare(
            self.request,
            self.auth,
            force_custom_method=bool(self.options.get("force_custom_method", False)),
        )
        return self

    # Sending

    def perform(self, uri=None, method=None):
        """Prepare and send synchronously, always returning the Response"""
        self.prepare(uri, method)
        self.prepare_handler()
        self.response = self.handler.send()
        logger.debug("%s %s -> %s", self.request.method, self.handler.uri, self.response.code)
        return self.response

    def send(self, uri=None, method=None):
        """Send the request.

        Returns:
            A Promise when the ``async_`` option is set, the parsed body when
            ``auto`` is set, the Response otherwise
        """
        if self.options.get("async_"):
            self.prepare(uri, method)
            return self.send_async()
        response = self.perform(uri, method)
        if self.options.get("auto"):
            return response.get_parsed_response()
        return response

    def send_async(self):
        return Promise(
            self, timeout=self.options.get("timeout"), select_timeout=self.config.select_timeout
        )

    def request_method(self, method, url, **options):
        for name, value in options.items():
            self.set_option(name, value)
        return self.send(url, method)

    def get(self, url=None, **options):
        return self.request_method("GET", url, **options)

    def post(self, url=None, **options):
        return self.request_method("POST", url, **options)

    def put(self, url=None, **options):
        return self.request_method("PUT", url, **options)

    def patch(self, url=None, **options):
        return self.request_method("PATCH", url, **options)

    def delete(self, url=None, **options):
        return self.request_method("DELETE", url, **options)

    def head(self, url=None, **options):
        return self.request_method("HEAD", url, **options)

    def options_method(self, url=None, **options):
        return self.request_method("OPTIONS", url, **options)

    # Status

    def has_response(self):
        return self.response is not None

    def is_complete(self):
        return self.response is not None

    def is_success(self):
        return self.response.is_success() if self.response is not None else None

    def is_error(self):
        return self.response.is_error() if self.response is not None else None

    # Multi

    def set_multi_handler(self, multi, name=None):
        """Register this client with a CurlMulti scheduler"""
        if not isinstance(self.handler, Curl):
            self.handler = Curl()
        multi.add_handle(self, name)
        self.multi = multi
        return self

    @classmethod
    def create_multi(cls, requests, multi=None):
        """Build clients for ``requests`` and register them on one scheduler.

        Args:
            requests: Mapping of name -> URI/Request/Client, or a sequence of them
            multi: Existing CurlMulti to use
        """
        multi = multi if multi is not None else CurlMulti()
        items = requests.items() if hasattr(requests, "items") else enumerate(requests)
        for name, value in items:
            client = value if isinstance(value, Client) else cls(value)
            client.set_multi_handler(multi, None if isinstance(name, int) else name)
        return multi

    def abort(self):
        """Stop the current transfer and release the handler"""
        if self.multi is not None:
            self.multi.remove_handle(handle=self)
            self.multi = None
        if self.handler is not None:
            self.handler.disconnect()
            self.handler = None

    # Rendering

    def render(self):
        """Render the prepared request as raw HTTP/1.1 text"""
        self.prepare()
        self.prepare_handler()

        parts = urlsplit(self.handler.uri)
        target = parts.path or "/"
        if parts.query:
            target += "?" + parts.query

        transfer = self.handler.prepared
        lines = [f"{transfer.method} {target} HTTP/1.1", f"Host: {parts.netloc}"]
        lines.extend(transfer.headers)
        rendered = "\r\n".join(lines) + "\r\n\r\n"

        if transfer.body:
            rendered += transfer.body.decode("utf-8", errors="replace")
        return rendered

    def reset(self, data=True, headers=False, clear=False):
        """Clear request state.

        Args:
            data: Drop query, data and files
            headers: Drop headers and the user agent
            clear: Drop everything, including the request, handler and options
        """
        if clear:
            self.close()
            self.request = None
            self.response = None
            self.auth = None
            self.options = {}
            return self

        if data:
            for name in ("query", "data", "files", "body"):
                self.options.pop(name, None)
            if self.request is not None:
                self.request.remove_all_query()
                self.request.remove_all_data()
                self.request.remove_body()
        if headers:
            self.options.pop("headers", None)
            self.options.pop("user_agent", None)
            if self.request is not None:
                self.request.remove_all_headers()
        return self

    # Curl command conversion

    def to_curl_command(self):
        from ._command import client_to_command

        return client_to_command(self)

    @classmethod
    def from_curl_command(cls, command, **options):
        from ._command import command_to_client

        return command_to_client(command, **options)

    # Lifecycle

    def close(self):
        if self.multi is not None:
            self.multi.remove_handle(handle=self)
            self.multi = None
        if self.handler is not None:
            self.handler.disconnect()
            self.handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"<Client [{self.request!r}]>"


def request(method, url, **kwargs):
    """Send a single request with a throwaway Client"""
    auth = kwargs.pop("auth", None)
    handler = kwargs.pop("handler", None)
    if isinstance(auth, tuple):
        auth = Auth.create_basic(*auth)
    client = Client(url, handler=handler, auth=auth, method=method, **kwargs)
    if client.get_option("async_"):
        return client.send()
    with client:
        return client.send()


def get(url, **kwargs):
    return request("GET", url, **kwargs)


def post(url, **kwargs):
    return request("POST", url, **kwargs)


def put(url, **kwargs):
    return request("PUT", url, **kwargs)


def patch(url, **kwargs):
    return request("PATCH", url, **kwargs)


def delete(url, **kwargs):
    return request("DELETE", url, **kwargs)


def head(url, **kwargs):
    return request("HEAD", url, **kwargs)


def options(url, **kwargs):
    return request("OPTIONS", url, **kwargs)
