"""
Example demonstrating AsyncClient

Each request runs in the default thread pool with its own handler, so
requests can be gathered concurrently.
"""

import asyncio
import time

import httpweave


async def main():
    """Main async function demonstrating AsyncClient"""

    print("=== httpweave AsyncClient Demo ===\n")

    async with httpweave.AsyncClient(headers={"Accept": "application/json"}) as client:
        response = await client.get("https://httpbin.org/get")
        print(f"Single request: {response.status_code}")

        start = time.perf_counter()
        responses = await asyncio.gather(*(client.get("https://httpbin.org/delay/1") for _ in range(5)))
        elapsed = time.perf_counter() - start
        print(f"5 x /delay/1 concurrently: {[r.status_code for r in responses]} in {elapsed:.2f}s")

        # Promises can be awaited without blocking the loop
        with httpweave.Client("https://httpbin.org/status/503", async_=True) as sync_client:
            promise = sync_client.send()
            result = await client.wait(promise, unwrap=False)
            print(f"Promise state: {promise.state.value}, result: {result}")


if __name__ == "__main__":
    asyncio.run(main())
