"""Tests for JSON-RPC transports over HTTP and WebSocket"""

import json

import pytest
from httpx import AsyncClient

from conftest import FakeWebSocket


@pytest.mark.asyncio
async def test_rpc_tool_call(client: AsyncClient, telephony):
    telephony.next_call_id = "CA1"

    response = await client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 7,
            "method": "tools/call",
            "params": {"name": "call", "arguments": {"to": "+15551234567", "message": "hello"}},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == 7
    assert body["result"]["callId"] == "CA1"


@pytest.mark.asyncio
async def test_rpc_params_as_arguments(client: AsyncClient):
    response = await client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": "a", "method": "tools/validate", "params": {"token": "tok-valid"}},
    )

    assert response.json() == {
        "jsonrpc": "2.0",
        "id": "a",
        "result": {"isValid": True, "phoneNumber": "919876543210"},
    }


@pytest.mark.asyncio
async def test_rpc_nested_arguments(client: AsyncClient):
    response = await client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/validate",
            "params": {"arguments": {"token": "nope"}},
        },
    )

    assert response.json()["result"] == {"isValid": False, "message": "Invalid or expired token"}


@pytest.mark.asyncio
async def test_rpc_errors(client: AsyncClient):
    response = await client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 2, "method": "tools/record", "params": {"callId": "CA1", "action": "stop"}},
    )

    error = response.json()["error"]
    assert error["code"] == -32002
    assert error["message"] == "No active recordings found for call CA1"
    assert error["data"]["type"] == "NoActiveRecording"

    response = await client.post("/mcp", json={"jsonrpc": "2.0", "id": 3, "method": "tools/fax"})
    assert response.json()["error"]["code"] == -32601

    response = await client.post("/mcp", json={"jsonrpc": "2.0", "id": 4, "method": "resources/list"})
    assert response.json()["error"]["code"] == -32601


@pytest.mark.asyncio
async def test_rpc_list(client: AsyncClient):
    response = await client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"})

    tools = response.json()["result"]["tools"]
    assert {tool["name"] for tool in tools} >= {"call", "record", "validate"}


@pytest.mark.asyncio
async def test_connect(client: AsyncClient):
    response = await client.post("/mcp/connect", json={"url": "http://localhost:8000/mcp"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "connected"
    assert body["serverInfo"]["name"] == "call-mcp-server"
    assert "summarize" in body["capabilities"]["tools"]

    response = await client.post("/mcp/connect", json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_socket_tool_call_replies_to_sender(context):
    """Test a tool call over the socket is answered on that socket"""
    frame = json.dumps(
        {"jsonrpc": "2.0", "id": 5, "method": "tools/validate", "params": {"token": "nope"}}
    )
    websocket = FakeWebSocket([frame])

    await context.registry.handle_connection(websocket)

    assert websocket.accepted
    assert websocket.sent == [
        {
            "jsonrpc": "2.0",
            "id": 5,
            "result": {"isValid": False, "message": "Invalid or expired token"},
        }
    ]
    assert context.registry.connections == {}


@pytest.mark.asyncio
async def test_socket_envelope_with_null_or_array_params(context):
    """Test envelope frames are answered whatever their params hold"""
    frames = [
        json.dumps({"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": None}),
        json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/fax", "params": [1]}),
        json.dumps({"jsonrpc": "2.0", "id": 3, "method": "tools/validate", "params": [1]}),
    ]
    websocket = FakeWebSocket(frames)

    await context.registry.handle_connection(websocket)

    listed, unknown, invalid = websocket.sent
    assert listed["id"] == 1
    assert [tool["name"] for tool in listed["result"]["tools"]][0] == "validate"
    assert unknown == {"type": "error", "error": "No handler for method: tools/fax", "id": 2}
    assert invalid["id"] == 3
    assert invalid["error"]["code"] == -32602
    assert invalid["error"]["message"] == "Tool arguments must be an object"
