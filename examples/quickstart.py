#!/usr/bin/env python3
"""Send one callback.

Posts a small JSON-looking text payload to a public endpoint and prints
the response status. Text payloads are sent as-is, without a JSON
content type.

Run:
    python examples/quickstart.py
"""

import asyncio
from datetime import UTC, datetime

from webcallback import Callback, close_default_transport, configure_logging


async def main() -> None:
    configure_logging(level="DEBUG", format="text")

    cb = Callback(
        url="https://example.com/payload",
        payload=f'{{"time_now": "{datetime.now(UTC).replace(microsecond=0).isoformat()}"}}',
    )
    try:
        response = await cb.dispatch(timeout=30.0)
        print(f"Response: {response.status_code} {response.reason_phrase}")
    finally:
        await close_default_transport()


if __name__ == "__main__":
    asyncio.run(main())
