from __future__ import annotations

import asyncio

import httpx

from _session import MCP_URL, open_session


async def main() -> None:
    base_url = MCP_URL.rsplit("/mcp", 1)[0]
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{base_url}/health")
        print(f"/health -> {response.status_code} {response.text}")

    async with open_session() as session:
        tools = await session.list_tools()
        print(f"Found {len(tools.tools)} tools")

        print("Calling linear_get_user...")
        result = await session.call_tool("linear_get_user", {})
        if result.isError:
            print("linear_get_user FAILED")
        else:
            print("linear_get_user OK")
        for item in result.content:
            print(getattr(item, "text", item))


if __name__ == "__main__":
    asyncio.run(main())
