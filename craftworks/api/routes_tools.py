# craftworks/api/routes_tools.py
"""
Tool-call API routes.

Lists the tool catalog and invokes tools over HTTP. Tool failures come
back as 200 with is_error set, matching tool transport semantics.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from ..tools import ToolDispatcher
from .deps import get_tool_dispatcher

router = APIRouter(prefix="/api/tools", tags=["tools"])


@router.get("")
async def list_tools(
    dispatcher: ToolDispatcher = Depends(get_tool_dispatcher),
) -> Dict[str, Any]:
    tools = dispatcher.list_tools()
    return {"tools": tools, "count": len(tools)}


@router.post("/{name}")
async def call_tool(
    name: str,
    arguments: Optional[Dict[str, Any]] = Body(None),
    dispatcher: ToolDispatcher = Depends(get_tool_dispatcher),
) -> Dict[str, Any]:
    """Invoke a tool with a JSON object of arguments."""
    return dispatcher.call_tool(name, arguments).to_dict()
