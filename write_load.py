"""
write_load.py — simple async load script: create links, then fire clicks at them

Usage:
  python write_load.py --base http://127.0.0.1:8000 --links 50 --clicks 5000 --concurrency 100 --out links_created.jsonl
"""
import argparse
import asyncio
import json
import random
import string
import time
from datetime import datetime, timezone

import httpx

COUNTRIES = ["US", "GB", "DE", "FR", "IN", "BR", "JP", None]
DEVICES = ["mobile", "desktop", "tablet", None]
REFERRERS = ["https://google.com", "https://twitter.com", "https://news.ycombinator.com", None]


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _rand_path(n=6):
    alphabet = string.ascii_letters + string.digits
    return "".join(random.choice(alphabet) for _ in range(n))


async def _create_one(client: httpx.AsyncClient, base: str, idx: int):
    url = f"https://example.com/{_rand_path(8)}?q={idx}"
    try:
        r = await client.post(f"{base}/api/generate", json={"url": url}, timeout=10)
        r.raise_for_status()
        return r.json()["data"]
    except (httpx.HTTPError, KeyError, ValueError):
        return None


async def _click_one(client: httpx.AsyncClient, base: str, link_id: str) -> bool:
    payload = {
        "linkId": link_id,
        "additionalData": {
            "country": random.choice(COUNTRIES),
            "deviceType": random.choice(DEVICES),
            "referrer": random.choice(REFERRERS),
        },
    }
    try:
        r = await client.post(f"{base}/api/track", json=payload, timeout=10)
        r.raise_for_status()
        return True
    except httpx.HTTPError:
        return False


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--links", type=int, default=50)
    parser.add_argument("--clicks", type=int, default=5000)
    parser.add_argument("--concurrency", type=int, default=100)
    parser.add_argument("--out", default="links_created.jsonl")
    args = parser.parse_args()

    start_iso = _now_iso()
    t0 = time.perf_counter()

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:
        sem = asyncio.Semaphore(args.concurrency)

        async def _bounded(coro):
            async with sem:
                return await coro

        created = await asyncio.gather(*(_bounded(_create_one(client, args.base, i)) for i in range(args.links)))
        links = [link for link in created if link]
        with open(args.out, "w", encoding="utf-8") as out_f:
            for link in links:
                out_f.write(json.dumps({"id": link["id"], "code": link["shortCode"], "url": link["originalUrl"]}) + "\n")

        t1 = time.perf_counter()
        results = []
        if links:
            results = await asyncio.gather(
                *(_bounded(_click_one(client, args.base, random.choice(links)["id"])) for _ in range(args.clicks))
            )
        t2 = time.perf_counter()

        summary = (await client.post(f"{args.base}/api/analytics", json={"timeRange": "1h"})).json()

    ok_clicks = sum(1 for r in results if r)
    print(f"START: {start_iso}")
    print(f"END:   {_now_iso()}")
    print(f"TOTAL: {t2 - t0:.3f} s")
    print(f"LINKS: created={len(links)}/{args.links} in {t1 - t0:.3f} s")
    print(f"CLICKS: ok={ok_clicks}, fail={len(results) - ok_clicks}")
    if t2 > t1 and ok_clicks:
        print(f"TPS:   {ok_clicks / (t2 - t1):.1f} clicks/s")
    print(f"SUMMARY (1h): {json.dumps(summary.get('data', summary))}")


if __name__ == "__main__":
    asyncio.run(main())
