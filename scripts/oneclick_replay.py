"""Async replay generator for the one-click charge endpoint.

Fires `--attempts` concurrent calls for each of `--keys` idempotency keys and
reports how many distinct order ids came back per key. Sequential retries of a
key should always collapse to one order; concurrent first attempts may not.
"""

import argparse
import asyncio
import statistics
import time
from collections import defaultdict
from uuid import uuid4

import httpx


async def send_one(client: httpx.AsyncClient, base_url: str, vault_id: str, key: str):
    """Send one one-click request and return (status_code, order_id, latency_ms)."""

    started = time.perf_counter()
    try:
        resp = await client.post(
            f"{base_url}/api/orders/oneclick",
            json={"vaultId": vault_id, "amount": "100", "currency": "JPY"},
            headers={"x-idempotency-key": key, "x-correlation-id": str(uuid4())},
        )
        latency = (time.perf_counter() - started) * 1000
        order_id = resp.json().get("orderId") if resp.status_code == 200 else None
        return resp.status_code, order_id, latency
    except Exception:
        latency = (time.perf_counter() - started) * 1000
        return 599, None, latency


async def run(keys: int, attempts: int, concurrency: int, base_url: str, vault_id: str, sequential: bool):
    """Replay each key `attempts` times and print a convergence summary."""

    sem = asyncio.Semaphore(concurrency)
    orders_by_key: dict[str, set[str]] = defaultdict(set)
    codes: list[int] = []
    lats: list[float] = []

    async with httpx.AsyncClient(timeout=30.0) as client:
        async def worker(key: str):
            async with sem:
                return key, await send_one(client, base_url, vault_id, key)

        def record(key: str, code: int, order_id: str | None, latency: float) -> None:
            codes.append(code)
            lats.append(latency)
            if order_id:
                orders_by_key[key].add(order_id)

        key_names = [f"replay-{uuid4()}" for _ in range(keys)]
        if sequential:
            for key in key_names:
                for _ in range(attempts):
                    _, result = await worker(key)
                    record(key, *result)
        else:
            tasks = [asyncio.create_task(worker(k)) for k in key_names for _ in range(attempts)]
            for task in asyncio.as_completed(tasks):
                key, result = await task
                record(key, *result)

    total = len(codes)
    success = sum(1 for c in codes if 200 <= c < 300)
    diverged = sum(1 for ids in orders_by_key.values() if len(ids) > 1)
    print(f"total={total}")
    print(f"success={success}")
    print(f"errors={total - success}")
    print(f"keys={keys}")
    print(f"keys_with_multiple_orders={diverged}")
    if lats:
        print(f"p50_ms={statistics.median(lats):.2f}")
        print(f"avg_ms={statistics.mean(lats):.2f}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--keys", type=int, default=10)
    parser.add_argument("--attempts", type=int, default=3)
    parser.add_argument("--concurrency", type=int, default=10)
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--vault-id", required=True)
    parser.add_argument("--sequential", action="store_true")
    args = parser.parse_args()
    asyncio.run(run(args.keys, args.attempts, args.concurrency, args.base_url, args.vault_id, args.sequential))
