"""
Authorization header helpers
"""

import base64


class Auth:
    """Credentials rendered into a single request header.

    Supports Basic (username/password), Bearer tokens and API keys sent in a
    custom header.
    """

    def __init__(self, header="Authorization", scheme=None, token=None, username=None, password=None):
        self.header = header
        self.scheme = scheme
        self.token = token
        self.username = username
        self.password = password

    @classmethod
    def create_basic(cls, username, password):
        return cls(scheme="Basic", username=username, password=password)

    @classmethod
    def create_bearer(cls, token):
        return cls(scheme="Bearer", token=token)

    @classmethod
    def create_key(cls, key, header="Authorization", scheme=None):
        return cls(header=header, scheme=scheme, token=key)

    @classmethod
    def parse(cls, value, header="Authorization"):
        """Build an Auth from a raw header value such as ``Basic dXNlcjpwYXNz``"""
        value = value.strip()
        scheme, _, credentials = value.partition(" ")

        if scheme.lower() == "basic" and credentials:
            decoded = base64.b64decode(credentials.strip()).decode("utf-8")
            username, _, password = decoded.partition(":")
            return cls(header=header, scheme="Basic", username=username, password=password)
        if scheme.lower() == "bearer" and credentials:
            return cls(header=header, scheme="Bearer", token=credentials.strip())
        return cls(header=header, token=value)

    def is_basic(self):
        return self.scheme == "Basic"

    def is_bearer(self):
        return self.scheme == "Bearer"

    def is_key(self):
        return not self.is_basic() and not self.is_bearer()

    def create_auth_header(self):
        """Return the ``(name, value)`` header for these credentials"""
        if self.is_basic():
            if self.username is None or self.password is None:
                raise ValueError("Basic auth requires a username and a password")
            credentials = f"{self.username}:{self.password}".encode("utf-8")
            return self.header, "Basic " + base64.b64encode(credentials).decode("ascii")

        if not self.token:
            raise ValueError("No auth token or key has been set")
        if self.scheme:
            return self.header, f"{self.scheme} {self.token}"
        return self.header, self.token

    def __str__(self):
        name, value = self.create_auth_header()
        return f"{name}: {value}"
