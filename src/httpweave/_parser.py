"""
Parsing helpers shared by the client handlers and the server request

Covers raw header blocks, content (transfer) encodings and parsing a body
according to its content type.
"""

import base64
import gzip
import json
import logging
import quopri
import re
import zlib
from collections import namedtuple
from email import policy
from email.parser import BytesParser
from urllib.parse import parse_qsl, quote_from_bytes, quote_plus, unquote_to_bytes
from xml.etree import ElementTree

from urllib3 import HTTPHeaderDict

logger = logging.getLogger(__name__)

BASE64 = "base64"
QUOTED = "quoted-printable"
URL = "url"
RAW_URL = "raw-url"
GZIP = "gzip"
DEFLATE = "deflate"
IDENTITY = "identity"

JSON = "application/json"
XML = "application/xml"
URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"

_STATUS_LINE = re.compile(r"^HTTP/(\d(?:\.\d)?)\s+(\d{3})(?:\s+(.*))?$")

ParsedHeaders = namedtuple("ParsedHeaders", ["version", "code", "message", "headers"])
UploadedFile = namedtuple("UploadedFile", ["filename", "content_type", "content"])


def parse_headers(headers):
    """Parse a raw header block.

    Args:
        headers: Header block as bytes, str or a list of lines

    Returns:
        ParsedHeaders(version, code, message, headers). When the block holds
        more than one response (redirects, ``100 Continue``) the last one wins.
    """
    if isinstance(headers, (bytes, bytearray)):
        headers = bytes(headers).decode("iso-8859-1")
    if isinstance(headers, str):
        lines = re.split(r"\r?\n", headers)
    else:
        lines = list(headers)

    version = code = message = None
    parsed = HTTPHeaderDict()

    for line in lines:
        line = line.strip()
        if not line:
            continue
        if line.startswith("HTTP/"):
            match = _STATUS_LINE.match(line)
            if match is None:
                logger.debug("Ignoring malformed status line %r", line)
                continue
            version = match.group(1)
            code = int(match.group(2))
            message = match.group(3) or None
            parsed = HTTPHeaderDict()
        elif ":" in line:
            name, value = line.split(":", 1)
            parsed.add(name.strip(), value.strip())

    return ParsedHeaders(version, code, message, parsed)


def _to_bytes(data):
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def decode_chunked(data):
    """Decode a body sent with ``Transfer-Encoding: chunked``.

    Data that does not look chunked is returned unchanged.
    """
    data = _to_bytes(data)
    decoded = bytearray()
    rest = data

    while rest:
        line, sep, rest = rest.partition(b"\r\n")
        if not sep:
            break
        size = line.split(b";", 1)[0].strip()
        if not size:
            continue
        try:
            length = int(size, 16)
        except ValueError:
            return data
        if length == 0:
            break
        decoded += rest[:length]
        rest = rest[length + 2:]

    return bytes(decoded)


def decode_data(data, encoding=None, chunked=False):
    """Undo a content encoding.

    Args:
        data: Encoded payload
        encoding: One of gzip, deflate, base64, quoted-printable, url, raw-url
        chunked: De-chunk the payload first

    Returns:
        Decoded bytes. Unknown encodings are returned untouched.
    """
    if chunked:
        data = decode_chunked(data)
    if not encoding:
        return data

    encoding = encoding.strip().lower()
    data = _to_bytes(data)

    if encoding in (GZIP, "x-gzip"):
        return gzip.decompress(data)
    if encoding == DEFLATE:
        # zlib-wrapped streams carry a header whose first two bytes are a multiple of 31
        if len(data) >= 2 and (data[0] * 256 + data[1]) % 31 == 0:
            return zlib.decompress(data)
        return zlib.decompress(data, -zlib.MAX_WBITS)
    if encoding == BASE64:
        return base64.b64decode(data)
    if encoding in (QUOTED, "quoted"):
        return quopri.decodestring(data)
    if encoding == URL:
        return unquote_to_bytes(data.replace(b"+", b" "))
    if encoding == RAW_URL:
        return unquote_to_bytes(data)
    if encoding != IDENTITY:
        logger.debug("Unknown content encoding %r, leaving data as is", encoding)
    return data


def encode_data(data, encoding):
    """Apply a content encoding, the inverse of :func:`decode_data`"""
    encoding = encoding.strip().lower()
    data = _to_bytes(data)

    if encoding in (GZIP, "x-gzip"):
        return gzip.compress(data)
    if encoding == DEFLATE:
        return zlib.compress(data)
    if encoding == BASE64:
        return base64.b64encode(data)
    if encoding in (QUOTED, "quoted"):
        return quopri.encodestring(data)
    if encoding == URL:
        return quote_plus(data).encode("ascii")
    if encoding == RAW_URL:
        return quote_from_bytes(data).encode("ascii")
    return data


def parse_query(query):
    """Parse a query string into a dict; repeated keys collect into lists"""
    if isinstance(query, (bytes, bytearray)):
        query = bytes(query).decode("utf-8")
    result = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key in result:
            if not isinstance(result[key], list):
                result[key] = [result[key]]
            result[key].append(value)
        else:
            result[key] = value
    return result


def _element_to_dict(element):
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()

    result = {}
    if element.attrib:
        result["@attributes"] = dict(element.attrib)
    for child in children:
        value = _element_to_dict(child)
        if child.tag in result:
            if not isinstance(result[child.tag], list):
                result[child.tag] = [result[child.tag]]
            result[child.tag].append(value)
        else:
            result[child.tag] = value
    return result


def parse_multipart(body, content_type):
    """Split a multipart/form-data body into form fields and files.

    Returns:
        Tuple of (fields, files) where files maps field names to UploadedFile
    """
    header = b"Content-Type: " + content_type.encode("latin-1") + b"\r\n\r\n"
    message = BytesParser(policy=policy.HTTP).parsebytes(header + _to_bytes(body))

    fields, files = {}, {}
    if not message.is_multipart():
        return fields, files

    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if name is None:
            continue
        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()
        if filename:
            files[name] = UploadedFile(filename, part.get_content_type(), payload)
        else:
            charset = part.get_content_charset() or "utf-8"
            fields[name] = payload.decode(charset, errors="replace")

    return fields, files


def parse_data_by_content_type(data, content_type, encoding=None, chunked=False):
    """Decode a payload and parse it according to its content type.

    JSON and XML become dicts, url-encoded and multipart bodies become field
    dicts. Other types come back as decoded bytes.
    """
    data = decode_data(data, encoding, chunked)
    media_type = (content_type or "").split(";", 1)[0].strip().lower()

    if "json" in media_type:
        text = _to_bytes(data).decode("utf-8")
        return json.loads(text) if text.strip() else None
    if "xml" in media_type:
        root = ElementTree.fromstring(_to_bytes(data))
        return _element_to_dict(root)
    if media_type == URLENCODED:
        return parse_query(_to_bytes(data))
    if media_type == MULTIPART:
        fields, files = parse_multipart(data, content_type)
        fields.update(files)
        return fields
    return data


__all__ = [
    "ParsedHeaders",
    "UploadedFile",
    "decode_chunked",
    "decode_data",
    "encode_data",
    "parse_data_by_content_type",
    "parse_headers",
    "parse_multipart",
    "parse_query",
]
