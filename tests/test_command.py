"""
Curl command conversion tests for httpweave
"""

import shlex

import pytest

from httpweave import Auth, Client, Request
from tests.test_server import MockHTTPServer


class TestFromCurlCommand:
    """Test building clients from curl command lines"""

    def test_simple_get(self):
        """Test a bare URL"""
        with Client.from_curl_command("curl https://example.com/get") as client:
            assert client.request.uri == "https://example.com/get"
            assert client.get_option("method") is None

    def test_headers_and_method(self):
        """Test -X and -H"""
        command = "curl -X PUT -H 'Accept: application/json' -H 'X-Trace: 1' https://example.com/put"
        with Client.from_curl_command(command) as client:
            assert client.get_option("method") == "PUT"
            assert client.get_option("headers") == {"Accept": "application/json", "X-Trace": "1"}

    def test_form_data(self):
        """Test -d data is joined into a url-encoded body and implies POST"""
        with Client.from_curl_command("curl -d a=1 -d b=2 https://example.com/post") as client:
            assert client.get_option("method") == "POST"
            assert client.get_option("body") == "a=1&b=2"
            assert client.get_option("headers")["Content-Type"] == "application/x-www-form-urlencoded"

    def test_get_flag_moves_data_to_query(self):
        """Test -G sends the data as query parameters"""
        with Client.from_curl_command("curl -G -d q=weave https://example.com/get") as client:
            assert client.get_option("method") == "GET"
            assert client.get_option("query") == {"q": "weave"}

    def test_json_body(self):
        """Test --json sets the body and JSON headers"""
        with Client.from_curl_command("""curl --json '{"a": 1}' https://example.com/post""") as client:
            assert client.get_option("body") == '{"a": 1}'
            assert client.get_option("headers")["Content-Type"] == "application/json"
            assert client.get_option("method") == "POST"

    def test_raw_body_with_content_type(self):
        """Test data with a non-form content type is sent as is"""
        command = "curl -H 'Content-Type: text/plain' --data-raw 'hello' https://example.com/post"
        with Client.from_curl_command(command) as client:
            assert client.get_option("body") == "hello"
            assert client.get_option("headers")["Content-Type"] == "text/plain"
            assert not client.has_option("data")

    def test_user_and_flags(self):
        """Test -u, -A, -k, -L and -m"""
        command = "curl -u user:pass -A agent/1.0 -k -L -m 2.5 -s https://example.com/"
        with Client.from_curl_command(command) as client:
            assert client.auth.is_basic()
            assert client.auth.username == "user"
            assert client.get_option("user_agent") == "agent/1.0"
            assert client.get_option("verify_peer") is False
            assert client.get_option("follow_location") is True
            assert client.get_option("timeout") == 2.5

    def test_head_flag(self):
        """Test -I means HEAD"""
        with Client.from_curl_command("curl -I https://example.com/") as client:
            assert client.get_option("method") == "HEAD"

    @pytest.mark.parametrize("command", ["wget https://example.com", "curl -H 'X: 1'", ""])
    def test_invalid_commands(self, command):
        """Test commands that are not curl or have no URL"""
        with pytest.raises(ValueError):
            Client.from_curl_command(command)

    def test_send_parsed_command(self):
        """Test a parsed command can be sent"""
        with MockHTTPServer() as server:
            with Client.from_curl_command(f"curl -d name=weave {server.url}/post") as client:
                assert client.send().json()["form"] == {"name": "weave"}


class TestToCurlCommand:
    """Test rendering clients as curl command lines"""

    def test_get(self):
        """Test a GET with query data"""
        with Client("https://example.com/get", query={"a": "1"}) as client:
            assert client.to_curl_command() == "curl -i 'https://example.com/get?a=1'"

    def test_post_with_headers(self):
        """Test method, headers and body are rendered"""
        request = Request("https://example.com/post", "POST", headers={"X-A": "1"}, body="x=1")
        with Client(request, auth=Auth.create_bearer("tok")) as client:
            argv = shlex.split(client.to_curl_command())
        assert argv[:4] == ["curl", "-i", "-X", "POST"]
        assert "X-A: 1" in argv
        assert "Authorization: Bearer tok" in argv
        assert not any(arg.startswith("Content-Length") for arg in argv)
        assert argv[argv.index("--data") + 1] == "x=1"
        assert argv[-1] == "https://example.com/post"

    def test_head_and_insecure(self):
        """Test HEAD and disabled verification"""
        with Client("https://example.com/", method="HEAD", verify_peer=False) as client:
            argv = shlex.split(client.to_curl_command())
        assert "-I" in argv
        assert "--insecure" in argv

    def test_command_round_trip(self):
        """Test a rendered command parses back into an equivalent client"""
        with Client("https://example.com/put", method="PUT", headers={"X-A": "1"}, body="payload") as client:
            command = client.to_curl_command()
        with Client.from_curl_command(command) as parsed:
            assert parsed.get_option("method") == "PUT"
            assert parsed.get_option("headers")["X-A"] == "1"
            assert parsed.get_option("body") == "payload"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
