#!/usr/bin/env python3
import asyncio

from dotenv import load_dotenv

from jsonapi_adapter import AdapterConfig, JSONAPIAdapter, Snapshot
from jsonapi_adapter.utils.logging import logging_context, setup_logging

load_dotenv()


async def main() -> None:
    """Load three comments with one request, then edit one of them."""
    config = AdapterConfig.from_env(coalesce_find_requests=True)
    async with JSONAPIAdapter(config) as adapter:
        with logging_context(example="coalescing"):
            # GET /comments?filter[id]=1,2
            comments = await asyncio.gather(
                adapter.find_one("comment", 1),
                adapter.find_one("comment", 2),
                adapter.find_one("comment", 2),
            )
            for comment in comments:
                print(f"comment {comment.id}: {comment.attributes}")

            # PATCH /comments/1
            updated = await adapter.update(
                "comment", "1", Snapshot(attributes={"body": "Edited from the example"})
            )
            print(f"updated comment {updated.id}")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
