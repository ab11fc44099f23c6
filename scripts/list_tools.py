from __future__ import annotations

import asyncio

from _session import MCP_URL, open_session


async def main() -> None:
    async with open_session() as session:
        tools_result = await session.list_tools()
        print(f"Linear tools at {MCP_URL}:")
        for tool in tools_result.tools:
            print(f"- {tool.name}: {tool.description}")


if __name__ == "__main__":
    asyncio.run(main())
