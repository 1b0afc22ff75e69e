"""
Conversion between a Client and a ``curl`` command line
"""

import argparse
import logging
import shlex

from ._auth import Auth
from ._client import Client
from ._parser import JSON, URLENCODED, parse_query

logger = logging.getLogger(__name__)


def _build_parser():
    parser = argparse.ArgumentParser(prog="curl", add_help=False, allow_abbrev=False)
    parser.add_argument("url", nargs="?")
    parser.add_argument("--url", dest="url_option")
    parser.add_argument("-X", "--request", dest="method")
    parser.add_argument("-H", "--header", dest="headers", action="append", default=[])
    parser.add_argument(
        "-d", "--data", "--data-raw", "--data-binary", "--data-ascii",
        dest="data", action="append", default=[],
    )
    parser.add_argument("--data-urlencode", dest="data_urlencode", action="append", default=[])
    parser.add_argument("--json", dest="json", action="append", default=[])
    parser.add_argument("-u", "--user", dest="user")
    parser.add_argument("-A", "--user-agent", dest="user_agent")
    parser.add_argument("-k", "--insecure", action="store_true")
    parser.add_argument("-I", "--head", action="store_true")
    parser.add_argument("-G", "--get", action="store_true")
    parser.add_argument("-L", "--location", action="store_true")
    parser.add_argument("-m", "--max-time", dest="max_time", type=float)
    parser.add_argument("-i", "--include", action="store_true")
    parser.add_argument("-s", "--silent", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--compressed", action="store_true")
    return parser


def command_to_client(command, **options):
    """Build a Client from a ``curl ...`` command string.

    Raises:
        ValueError: if the command is not a curl command or has no URL
    """
    argv = shlex.split(command)
    if not argv or argv[0] != "curl":
        raise ValueError("The command must start with 'curl'")

    args, unknown = _build_parser().parse_known_args(argv[1:])
    if unknown:
        logger.debug("Ignoring unsupported curl arguments: %s", unknown)

    url = args.url or args.url_option
    if not url:
        raise ValueError("The curl command has no URL")

    headers = {}
    for line in args.headers:
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip()] = value.strip()

    method = args.method.upper() if args.method else ("HEAD" if args.head else None)
    content_type = next((v for k, v in headers.items() if k.lower() == "content-type"), None)
    raw_data = "&".join(args.data + args.data_urlencode)

    if args.json:
        options["body"] = "".join(args.json)
        headers.setdefault("Content-Type", JSON)
        headers.setdefault("Accept", JSON)
        method = method or "POST"
    elif raw_data and args.get:
        options["query"] = parse_query(raw_data)
        method = "GET"
    elif raw_data:
        method = method or "POST"
        options["body"] = raw_data
        if content_type is None:
            headers["Content-Type"] = URLENCODED

    if headers:
        options["headers"] = headers
    if method:
        options["method"] = method
    if args.user_agent:
        options["user_agent"] = args.user_agent
    if args.insecure:
        options["verify_peer"] = False
        options["allow_self_signed"] = True
    if args.location:
        options["follow_location"] = True
    if args.max_time:
        options["timeout"] = args.max_time

    auth = None
    if args.user:
        username, _, password = args.user.partition(":")
        auth = Auth.create_basic(username, password)

    return Client(url, auth=auth, **options)


def client_to_command(client):
    """Render a Client as an equivalent ``curl`` command string"""
    client.prepare()
    client.prepare_handler()
    transfer = client.handler.prepared

    argv = ["curl", "-i"]
    if transfer.method == "HEAD":
        argv.append("-I")
    elif transfer.method != "GET" or transfer.body is not None:
        argv.extend(["-X", transfer.method])

    for line in transfer.headers:
        if not line.lower().startswith("content-length:"):
            argv.extend(["-H", line])
    if transfer.body is not None:
        argv.extend(["--data", transfer.body.decode("utf-8", errors="replace")])
    if client.get_option("verify_peer") is False or client.get_option("allow_self_signed"):
        argv.append("--insecure")

    argv.append(transfer.uri)
    return " ".join(shlex.quote(arg) for arg in argv)
