"""Performance benchmarking script for the query service."""

import argparse
import asyncio
import json
import time
from typing import Dict, List

import httpx

QUESTIONS = [
    "What is the agenda for the first day?",
    "Who are the speakers?",
    "Where is the venue?",
    "What time does registration open?",
    "Summarize the key decisions.",
]


async def benchmark_query_service(
    base_url: str,
    owner_id: str,
    event_id: str,
    num_queries: int = 100,
    concurrent: int = 10,
) -> Dict:
    """
    Benchmark the query service.

    Args:
        base_url: Base URL of query service.
        owner_id: Identity sent in the X-User-Email header.
        event_id: Event to ask questions against.
        num_queries: Total number of questions to ask.
        concurrent: Number of concurrent requests.

    Returns:
        Benchmark results.
    """
    questions = (QUESTIONS * (num_queries // len(QUESTIONS) + 1))[:num_queries]
    latencies: List[float] = []
    errors: Dict[str, int] = {}

    async def run_query(client: httpx.AsyncClient, question: str) -> None:
        start = time.time()
        try:
            response = await client.post(
                f"{base_url}/api/events/{event_id}/ask",
                json={"question": question},
                headers={"X-User-Email": owner_id},
            )
        except httpx.HTTPError as e:
            errors[type(e).__name__] = errors.get(type(e).__name__, 0) + 1
            return

        if response.status_code == 200:
            latencies.append(time.time() - start)
        else:
            code = response.json().get("error", {}).get("code", str(response.status_code))
            errors[code] = errors.get(code, 0) + 1

    start_time = time.time()
    async with httpx.AsyncClient(timeout=60.0) as client:
        for i in range(0, len(questions), concurrent):
            batch = questions[i:i + concurrent]
            await asyncio.gather(*[run_query(client, q) for q in batch])
    total_time = time.time() - start_time

    if latencies:
        ordered = sorted(latencies)
        avg_latency = sum(ordered) / len(ordered)
        p50 = ordered[len(ordered) // 2]
        p95 = ordered[int(len(ordered) * 0.95)]
        p99 = ordered[int(len(ordered) * 0.99)]
    else:
        avg_latency = p50 = p95 = p99 = 0

    return {
        "total_queries": num_queries,
        "successful": len(latencies),
        "errors": errors,
        "total_time_seconds": total_time,
        "queries_per_second": num_queries / total_time if total_time > 0 else 0,
        "avg_latency_seconds": avg_latency,
        "p50_latency_seconds": p50,
        "p95_latency_seconds": p95,
        "p99_latency_seconds": p99,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("owner")
    parser.add_argument("event_id")
    parser.add_argument("--base-url", default="http://localhost:8003")
    parser.add_argument("--queries", type=int, default=100)
    parser.add_argument("--concurrent", type=int, default=10)
    args = parser.parse_args()

    print("Running query benchmark...")
    results = asyncio.run(
        benchmark_query_service(
            args.base_url, args.owner, args.event_id, args.queries, args.concurrent
        )
    )
    print(json.dumps(results, indent=2))
