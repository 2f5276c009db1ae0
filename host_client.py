"""Demo host: drives one overlay session over the WebSocket endpoint.

Shows an item card with a short auto-hide, updates its price while visible,
and prints every event the surface sends back until the card is hidden.

    uvicorn main:app --port 8000
    python host_client.py
"""
import asyncio
import json
import os
import time

import websockets
from websockets.exceptions import ConnectionClosed

WS_URI = os.getenv("OVERLAY_WS_URI", "ws://127.0.0.1:8000/overlay/stream?session_id=demo-1")
SHOW_DURATION_MS = 3000

# guard against waiting forever if the hide never arrives
MAX_WAIT_SECONDS = 10

ITEM_CARD = {
    "badge": "1",
    "imageUrl": "https://example.com/shoe.png",
    "originalPrice": "$150.000",
    "currentPrice": "$99.000",
    "discount": "34% OFF",
}


def envelope(event_type: str, **data) -> str:
    return json.dumps({"type": event_type, "data": data})


async def run():
    async with websockets.connect(WS_URI) as ws:
        start = time.time()
        shown = False

        while True:
            if time.time() - start > MAX_WAIT_SECONDS:
                print(f"timeout after {MAX_WAIT_SECONDS}s (no componentHidden).")
                break

            try:
                msg = await asyncio.wait_for(ws.recv(), timeout=MAX_WAIT_SECONDS)
            except (asyncio.TimeoutError, ConnectionClosed) as e:
                print(f"stopped waiting: {e!r}")
                break
            print("<-", msg)

            try:
                event = json.loads(msg)
            except json.JSONDecodeError:
                continue

            t = event.get("type")
            if t == "webViewReady" and not shown:
                await ws.send(envelope("showComponent", component="itemCard", duration=SHOW_DURATION_MS, data=ITEM_CARD))
                print("-> sent showComponent itemCard")
                shown = True
            elif t == "componentShown":
                await ws.send(envelope("updateComponentData", component="itemCard", data={"currentPrice": "$89.000"}))
                print("-> sent updateComponentData itemCard")
            elif t == "componentHidden":
                print("itemCard hidden, done")
                break


if __name__ == "__main__":
    asyncio.run(run())
