#!/usr/bin/env python3
"""
SSE Smoke Client
================

Manual check of a running bridge:
1. Connect to the SSE endpoint
2. Print the ``connected`` and ``tools`` events
3. POST ``tools/list`` and a ``search_nodes`` call with the issued client id
4. Print every ``message`` and ``heartbeat`` event until the timeout

Usage:
    python scripts/test_sse.py --base-url http://localhost:3000 --token secret
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import aiohttp


async def iter_sse_events(response: aiohttp.ClientResponse) -> AsyncIterator[Tuple[str, Any]]:
    """Yield ``(event, data)`` pairs from an SSE response body."""
    buffer = ""
    async for chunk in response.content.iter_any():
        buffer += chunk.decode("utf-8")
        while "\n\n" in buffer:
            block, buffer = buffer.split("\n\n", 1)
            event = "message"
            data_lines = []
            for line in block.split("\n"):
                if line.startswith("event:"):
                    event = line[len("event:") :].strip()
                elif line.startswith("data:"):
                    data_lines.append(line[len("data:") :].lstrip())
            if not data_lines:
                continue
            raw = "\n".join(data_lines)
            try:
                yield event, json.loads(raw)
            except json.JSONDecodeError:
                yield event, raw


async def post_message(
    session: aiohttp.ClientSession,
    base_url: str,
    headers: Dict[str, str],
    client_id: str,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    async with session.post(
        f"{base_url}/mcp/message",
        json=payload,
        headers={**headers, "X-Client-Id": client_id},
    ) as response:
        response.raise_for_status()
        return await response.json()


async def exercise_tools(
    session: aiohttp.ClientSession, base_url: str, headers: Dict[str, str], client_id: str
) -> None:
    print("\n🧪 Testing tools/list via POST...")
    listed = await post_message(
        session, base_url, headers, client_id, {"jsonrpc": "2.0", "method": "tools/list", "id": 1}
    )
    print(f"📊 Tools count: {len(listed.get('result', {}).get('tools', []))}")

    print("\n🧪 Testing tool execution...")
    called = await post_message(
        session,
        base_url,
        headers,
        client_id,
        {
            "jsonrpc": "2.0",
            "method": "tools/call",
            "params": {"name": "search_nodes", "arguments": {"query": "webhook", "limit": 3}},
            "id": 2,
        },
    )
    content = called.get("result", {}).get("content") or [{}]
    print(f"📋 Result preview: {content[0].get('text', 'No content')[:200]}")


async def run(base_url: str, token: Optional[str], duration: float) -> bool:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    params = {"token": token} if token else {}
    timeout = aiohttp.ClientTimeout(total=None, sock_connect=10)

    print(f"🔄 Connecting to {base_url}/mcp/sse")
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(
            f"{base_url}/mcp/sse",
            params=params,
            headers={**headers, "Accept": "text/event-stream"},
        ) as response:
            if response.status != 200:
                print(f"❌ SSE connection failed: HTTP {response.status} {await response.text()}")
                return False
            print(f"✅ SSE connection established: {response.headers.get('X-Client-Id')}")

            calls: Optional[asyncio.Task] = None

            async def listen() -> None:
                nonlocal calls
                async for event, data in iter_sse_events(response):
                    if event == "connected":
                        print(f"🔗 Connected with client ID: {data['clientId']}")
                        print(f"📦 Server capabilities: {data['capabilities']}")
                        calls = asyncio.create_task(
                            exercise_tools(session, base_url, headers, data["clientId"])
                        )
                    elif event == "tools":
                        names = [tool["name"] for tool in data["tools"]]
                        print(f"🛠️  Available tools: {len(names)} {names[:5]}")
                    elif event == "heartbeat":
                        print(f"💓 Heartbeat: {data['timestamp']}")
                    else:
                        print(f"💬 {event}: {json.dumps(data)[:200]}")

            try:
                await asyncio.wait_for(listen(), timeout=duration)
                print("🔌 Connection closed by server")
            except asyncio.TimeoutError:
                print("\n⏱️  Test completed, closing connection...")

            if calls is None:
                print("❌ No connected event received")
                return False
            try:
                await calls
            except aiohttp.ClientError as e:
                print(f"❌ Tool call failed: {e}")
                return False
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke-test the MCP SSE bridge")
    parser.add_argument("--base-url", default=os.getenv("BASE_URL", "http://localhost:3000"))
    parser.add_argument("--token", default=os.getenv("AUTH_TOKEN"))
    parser.add_argument("--duration", type=float, default=30.0, help="Seconds to listen")
    args = parser.parse_args()

    ok = asyncio.run(run(args.base_url.rstrip("/"), args.token, args.duration))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
