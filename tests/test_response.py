"""
Response model tests for httpweave
"""

import gzip

import pytest

from httpweave import Response


class TestResponse:
    """Test the Response model"""

    def test_reason_from_code(self):
        """Test the reason phrase is filled in from the status code"""
        response = Response(code=404)
        assert response.status_code == 404
        assert response.reason == "Not Found"

    def test_explicit_message(self):
        """Test an explicit message is kept"""
        assert Response(code=200, message="Fine").message == "Fine"

    def test_unknown_code(self):
        """Test codes without a standard phrase"""
        assert Response(code=599).message is None

    @pytest.mark.parametrize(
        "code,success,error,redirect",
        [
            (101, True, False, False),
            (200, True, False, False),
            (302, True, False, True),
            (404, False, True, False),
            (503, False, True, False),
        ],
    )
    def test_status_classes(self, code, success, error, redirect):
        """Test status class predicates"""
        response = Response(code=code)
        assert response.is_success() is success
        assert response.is_error() is error
        assert response.is_redirect() is redirect

    def test_client_and_server_errors(self):
        """Test 4xx and 5xx are told apart"""
        assert Response(code=404).is_client_error()
        assert Response(code=500).is_server_error()
        assert not Response(code=500).is_client_error()

    def test_no_code(self):
        """Test a response without a code is neither success nor error"""
        response = Response()
        assert not response.is_success()
        assert not response.is_error()

    def test_text_and_json(self):
        """Test body accessors"""
        response = Response(code=200, headers={"Content-Type": "application/json"}, body='{"a": [1]}')
        assert response.text == '{"a": [1]}'
        assert response.json() == {"a": [1]}
        assert response.get_parsed_response() == {"a": [1]}

    def test_parsed_empty_body(self):
        """Test parsing an empty body"""
        assert Response(code=204).get_parsed_response() is None

    def test_decode_body_content(self):
        """Test gzip bodies are decoded in place"""
        response = Response(code=200, headers={"Content-Encoding": "gzip"}, body=gzip.compress(b"hi"))
        assert response.decode_body_content() == b"hi"
        assert response.body == b"hi"

    def test_chunked(self):
        """Test chunked detection"""
        assert Response(headers={"Transfer-Encoding": "chunked"}).is_chunked()
        assert not Response().is_chunked()

    def test_equality(self):
        """Test responses compare by value"""
        a = Response("1.1", 200, headers={"X": "1"}, body=b"x")
        b = Response("1.1", 200, headers={"X": "1"}, body=b"x")
        assert a == b
        assert a != Response("1.0", 200, headers={"X": "1"}, body=b"x")

    def test_repr(self):
        """Test the repr shows the code"""
        assert repr(Response(code=201)) == "<Response [201]>"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
