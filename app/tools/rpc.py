"""JSON-RPC 2.0 framing of tool invocations, shared by HTTP and WebSocket transports"""

from typing import Any, Dict, Optional, Union

import structlog

from app.errors import InvalidArguments, ToolError
from app.streaming.messages import EnvelopeMessage
from app.streaming.registry import ConnectionRegistry
from app.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger()

JSONRPC_VERSION = "2.0"
TOOL_METHOD_PREFIX = "tools/"
LIST_METHOD = "tools/list"
CALL_METHOD = "tools/call"
METHOD_NOT_FOUND = -32601

RequestId = Optional[Union[str, int]]


def rpc_result(request_id: RequestId, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: RequestId, code: int, message: str, data: Optional[dict] = None) -> Dict[str, Any]:
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def _arguments(params: Any) -> Any:
    """Params are either the arguments object or {"arguments": {...}}"""
    if isinstance(params, dict) and isinstance(params.get("arguments"), dict):
        return params["arguments"]
    return params


def _resolve(method: str, params: Any):
    if method == CALL_METHOD:
        if not isinstance(params, dict) or not params.get("name"):
            raise InvalidArguments("Missing required argument: name", field="name")
        return params["name"], params.get("arguments") or {}
    return method[len(TOOL_METHOD_PREFIX):], _arguments(params)


async def rpc_response(
    dispatcher: ToolDispatcher,
    method: str,
    params: Any = None,
    request_id: RequestId = None,
) -> Dict[str, Any]:
    """Run one JSON-RPC request against the dispatcher and frame the outcome"""
    if method == LIST_METHOD:
        return rpc_result(request_id, {"tools": dispatcher.list_tools()})

    if not method.startswith(TOOL_METHOD_PREFIX):
        return rpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    try:
        name, arguments = _resolve(method, params)
        result = await dispatcher.invoke(name, arguments)
    except ToolError as e:
        return rpc_error(request_id, e.rpc_code, e.message, e.to_dict())

    return rpc_result(request_id, result)


def register_socket_methods(registry: ConnectionRegistry, dispatcher: ToolDispatcher) -> None:
    """Expose every tool on the WebSocket as a `tools/<name>` method"""

    async def handle(message: EnvelopeMessage, connection_id: str) -> None:
        response = await rpc_response(dispatcher, message.method, message.params, message.id)
        await registry.send(connection_id, response)

    methods = [LIST_METHOD, CALL_METHOD] + [f"{TOOL_METHOD_PREFIX}{name}" for name in dispatcher.names]
    for method in methods:
        registry.register_method_handler(method, handle)

    logger.info("Socket methods registered", methods=len(methods))
