from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Dict

from _session import open_session


async def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python scripts/call_tool.py <linear_tool_name> ['<json-args>']")
        raise SystemExit(1)

    tool_name = sys.argv[1]
    try:
        params: Dict[str, Any] = json.loads(sys.argv[2]) if len(sys.argv) > 2 else {}
    except json.JSONDecodeError as exc:
        print(f"Failed to parse JSON arguments: {exc}")
        raise SystemExit(1)

    async with open_session() as session:
        result = await session.call_tool(tool_name, params)
        for item in result.content:
            print(getattr(item, "text", item))
        if result.isError:
            raise SystemExit(1)


if __name__ == "__main__":
    asyncio.run(main())
