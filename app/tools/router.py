"""Tool execution API endpoints for agents"""

from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel
import structlog

from app.context import ServiceContext, get_context
from app.errors import ToolError
from app.tools.rpc import rpc_response

router = APIRouter()
mcp_router = APIRouter()
logger = structlog.get_logger()

SERVER_VERSION = "1.0.0"


class RPCRequest(BaseModel):
    jsonrpc: str = "2.0"
    method: str
    params: Optional[Dict[str, Any]] = None
    id: Optional[Union[int, str]] = None


class ConnectRequest(BaseModel):
    url: Optional[str] = None
    token: Optional[str] = None


@router.get("")
async def list_tools(context: ServiceContext = Depends(get_context)):
    """List registered tools with their argument schemas"""
    return {"tools": context.dispatcher.list_tools()}


@router.post("/{name}")
async def invoke_tool(
    name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    context: ServiceContext = Depends(get_context),
):
    """Invoke a tool with a JSON arguments object"""
    try:
        return await context.dispatcher.invoke(name, arguments)
    except ToolError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@mcp_router.post("")
async def rpc(request: RPCRequest, context: ServiceContext = Depends(get_context)):
    """JSON-RPC 2.0 tool invocation"""
    if request.jsonrpc != "2.0":
        raise HTTPException(status_code=400, detail="Only JSON-RPC 2.0 is supported")
    return await rpc_response(context.dispatcher, request.method, request.params, request.id)


@mcp_router.post("/connect")
async def connect(request: ConnectRequest, context: ServiceContext = Depends(get_context)):
    """Acknowledge a client connection and advertise the tool set"""
    if not request.url:
        raise HTTPException(status_code=400, detail="Server URL is required")

    logger.info("MCP client connected", url=request.url, authenticated=bool(request.token))

    return {
        "status": "connected",
        "serverInfo": {
            "name": context.settings.service_name,
            "version": SERVER_VERSION,
            "url": request.url,
        },
        "capabilities": {"tools": context.dispatcher.names},
    }
