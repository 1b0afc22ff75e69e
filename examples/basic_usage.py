#!/usr/bin/env python3
"""
Basic usage examples for httpweave
"""

import httpweave


def example_simple_get():
    """Simple GET request"""
    print("=== Simple GET Request ===")

    response = httpweave.get("https://httpbin.org/get", query={"source": "httpweave"})
    print(f"Status: {response.status_code}")
    print(f"Body: {response.text[:100]}...")


def example_json_post():
    """POST JSON with a bearer token"""
    print("\n=== JSON POST ===")

    response = httpweave.post(
        "https://httpbin.org/post",
        data={"name": "weave", "tags": ["http", "curl"]},
        type="application/json",
        auth=httpweave.Auth.create_bearer("example-token"),
    )
    print(f"Status: {response.status_code}")
    print(f"Echoed JSON: {response.json()['json']}")


def example_handlers():
    """The same request through each transport"""
    print("\n=== Handlers ===")

    for name in ("curl", "stream"):
        with httpweave.Client("https://httpbin.org/headers", handler=name) as client:
            response = client.send()
            print(f"{name:>6}: {response.status_code} (HTTP/{response.version})")


def example_multi():
    """Several transfers driven together"""
    print("\n=== CurlMulti ===")

    multi = httpweave.Client.create_multi(
        {
            "ok": "https://httpbin.org/status/200",
            "missing": "https://httpbin.org/status/404",
            "slow": "https://httpbin.org/delay/1",
        }
    )
    with multi:
        multi.run(timeout=10)
        for summary in multi.collect_all_responses():
            print(f"{summary.method} {summary.uri} -> {summary.status_code}")
        print(f"All successful: {multi.is_success()}")
        print(f"Any errors: {multi.is_error()}")


def example_promise():
    """Promises with callbacks"""
    print("\n=== Promises ===")

    client = httpweave.Client("https://httpbin.org/uuid")
    promise = httpweave.ChainedPromise(client)
    promise.on_success(lambda response: print(f"Fulfilled: {response.json()['uuid']}"))
    promise.on_failure(lambda response: print(f"Rejected: {response.status_code if response else 'no response'}"))
    promise.on_finally(lambda promise: print(f"Final state: {promise.state.value}"))
    promise.resolve()
    client.close()


def example_curl_command():
    """Convert to and from curl command lines"""
    print("\n=== curl commands ===")

    client = httpweave.Client.from_curl_command(
        "curl -X PUT -H 'Accept: application/json' -d 'a=1' https://httpbin.org/put"
    )
    print(f"Parsed: {client.request!r}")
    print(f"Rendered: {client.to_curl_command()}")
    client.close()


if __name__ == "__main__":
    print("httpweave - Basic Usage Examples\n")
    print(f"Version: {httpweave.__version__}")
    print(f"libcurl: {httpweave.Curl.version()}\n")

    example_simple_get()
    example_json_post()
    example_handlers()
    example_multi()
    example_promise()
    example_curl_command()
