"""
Handler interface and registry tests for httpweave
"""

import pytest

import httpweave
from httpweave import Client, Curl, Handler, Request, Response, Stream
from httpweave import create_handler, register_handler, registered_handlers


class RecordingHandler(Handler):
    """Handler that answers every request with the prepared transfer"""

    def set_option(self, opt, value):
        self._options[opt] = value
        return self

    def set_user_agent(self, user_agent):
        return self.set_option("user_agent", user_agent)

    def set_verify_peer(self, verify=True):
        return self.set_option("verify_peer", verify)

    def allow_self_signed(self, allow=True):
        return self.set_option("allow_self_signed", allow)

    def set_follow_location(self, follow=True, max_redirects=20):
        return self.set_option("follow_location", follow)

    def set_timeout(self, seconds):
        return self.set_option("timeout", seconds)

    def prepare(self, request, auth=None, force_custom_method=False, clear=True):
        transfer = self._translate(request, auth)
        self._uri = transfer.uri
        self._method = transfer.method
        return self

    def send(self):
        self._resource = object()
        self._response = self.prepared
        return self.parse_response()

    def parse_response(self):
        transfer = self._response
        return Response(code=200, headers={"X-Method": transfer.method}, body=transfer.body or b"")

    def reset(self, restore_defaults=True):
        self._options = {}
        self._response = None
        return self

    def disconnect(self):
        self._resource = None


class TestHandlerRegistry:
    """Test registering and creating handlers by name"""

    def test_builtin_handlers(self):
        """Test curl and stream are registered"""
        handlers = registered_handlers()
        assert handlers["curl"] is Curl
        assert handlers["stream"] is Stream

    def test_create_handler(self):
        """Test creating a handler by name"""
        handler = create_handler("stream")
        assert isinstance(handler, Stream)

    def test_unknown_handler(self):
        """Test unknown names are rejected"""
        with pytest.raises(ValueError):
            create_handler("nope")

    def test_register_requires_handler_subclass(self):
        """Test only Handler subclasses can be registered"""
        with pytest.raises(TypeError):
            register_handler("bad", dict)

    def test_abstract_handler(self):
        """Test the interface cannot be instantiated"""
        with pytest.raises(TypeError):
            Handler()


class TestCustomHandler:
    """Test a third-party handler plugs into the client"""

    def setup_method(self):
        register_handler("recording", RecordingHandler)

    def test_client_uses_registered_handler(self):
        """Test the client sends through a registered handler"""
        with Client("http://example.com/items", handler="recording", method="PUT", body="x") as client:
            response = client.send()
            assert isinstance(client.handler, RecordingHandler)
            assert response.get_header("X-Method") == "PUT"
            assert response.body == b"x"
            assert client.handler.get_option("verify_peer") is True

    def test_translate_rules(self):
        """Test the shared request translation"""
        handler = RecordingHandler()
        handler.prepare(Request("http://example.com/get", data={"a": "1"}, headers={"Content-Type": "text/plain"}))
        assert handler.prepared.uri == "http://example.com/get?a=1"
        assert handler.prepared.body is None
        assert handler.prepared.headers == []

    def test_no_resource_until_sent(self):
        """Test resource() raises until the handler has one"""
        handler = RecordingHandler()
        with pytest.raises(httpweave.NoResource):
            handler.resource()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
