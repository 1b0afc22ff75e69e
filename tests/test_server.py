"""
Test HTTP server for httpweave testing

Provides a small httpbin-like server. Incoming requests are parsed with
httpweave.ServerRequest, so the echo endpoints double as coverage for it.
"""

import base64
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional

from httpweave import RequestInput, ServerRequest, ServerResponse


def _jsonable(value):
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


class MockHTTPHandler(BaseHTTPRequestHandler):
    """HTTP request handler for testing"""

    def log_message(self, format, *args):
        """Suppress log messages during tests"""
        pass

    def _send(self, code, body=b"", content_type="text/plain", headers=None):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
            content_type = "application/json"

        response = ServerResponse(code, headers={"Content-Type": content_type}, body=body)
        response.send(self, headers=headers)

    def _echo(self, request):
        files = {
            name: {"filename": f.filename, "content_type": f.content_type, "content": _jsonable(f.content)}
            for name, f in request.files.items()
        }
        parsed = request.parsed_data
        is_json = "json" in (request.content_type or "")
        return {
            "method": request.method,
            "path": request.path,
            "args": request.query,
            "headers": dict(request.headers.items()),
            "form": parsed if isinstance(parsed, dict) and not is_json else {},
            "json": _jsonable(parsed) if is_json else None,
            "files": files,
            "data": request.raw_body.decode("utf-8", errors="replace"),
            "origin": request.ip,
        }

    def _handle(self):
        request = ServerRequest(RequestInput.from_handler(self))
        first = request.get_segment(0)

        if request.is_options():
            self._send(204, headers={"Allow": "GET, HEAD, POST, PUT, PATCH, DELETE, OPTIONS"})

        elif request.path == "/get" and (request.is_get() or request.is_head()):
            self._send(200, self._echo(request))

        elif request.path in ("/post", "/put", "/patch", "/delete", "/anything"):
            expected = request.path.strip("/").upper()
            if expected != "ANYTHING" and request.method != expected:
                self._send(405, "Method Not Allowed")
            else:
                self._send(200, self._echo(request))

        elif request.path == "/headers":
            self._send(200, {"headers": dict(request.headers.items())})

        elif request.path == "/user-agent":
            self._send(200, {"user-agent": request.get_header("User-Agent")})

        elif first == "status" and request.get_segment(1):
            code = int(request.get_segment(1))
            self._send(code, f"Status {code}")

        elif first == "delay" and request.get_segment(1):
            time.sleep(float(request.get_segment(1)))
            self._send(200, self._echo(request))

        elif first == "redirect" and request.get_segment(1):
            remaining = int(request.get_segment(1))
            location = "/get" if remaining <= 1 else f"/redirect/{remaining - 1}"
            ServerResponse.redirect(location).send(self)

        elif request.path == "/gzip":
            body = json.dumps({"gzipped": True, "method": request.method})
            self._send(200, body, "application/json", {"Content-Encoding": "gzip"})

        elif request.path == "/xml":
            self._send(200, '<?xml version="1.0"?><slideshow title="Sample"><slide>One</slide></slideshow>', "application/xml")

        elif first == "basic-auth" and len(request.segments) == 3:
            expected = base64.b64encode(f"{request.segments[1]}:{request.segments[2]}".encode()).decode()
            if request.get_header("Authorization") == f"Basic {expected}":
                self._send(200, {"authenticated": True, "user": request.segments[1]})
            else:
                self._send(401, "Unauthorized", headers={"WWW-Authenticate": 'Basic realm="test"'})

        elif request.path == "/bearer":
            authorization = request.get_header("Authorization", "")
            if authorization.startswith("Bearer ") and len(authorization) > 7:
                self._send(200, {"authenticated": True, "token": authorization[7:]})
            else:
                self._send(401, "Unauthorized")

        else:
            self._send(404, "Not Found")

    do_GET = _handle
    do_HEAD = _handle
    do_POST = _handle
    do_PUT = _handle
    do_PATCH = _handle
    do_DELETE = _handle
    do_OPTIONS = _handle


class MockHTTPServer:
    """Mock HTTP server for testing"""

    def __init__(self, port: int = 0):
        self.port = port
        self.server: Optional[HTTPServer] = None
        self.thread: Optional[threading.Thread] = None

    def start(self):
        """Start the test server"""
        self.server = HTTPServer(("127.0.0.1", self.port), MockHTTPHandler)

        # Get the actual port if 0 was specified
        self.port = self.server.server_port

        self.thread = threading.Thread(target=self.server.serve_forever)
        self.thread.daemon = True
        self.thread.start()

        time.sleep(0.1)

    def stop(self):
        """Stop the test server"""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
        if self.thread:
            self.thread.join(timeout=1)

    @property
    def url(self):
        """Get the base URL for the server"""
        return f"http://127.0.0.1:{self.port}"

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
