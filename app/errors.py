"""Error taxonomy shared by the tool dispatcher and its transports"""

from typing import Optional


class ConfigurationError(Exception):
    """Required configuration is missing or malformed"""


class ToolError(Exception):
    """Base class for errors that are reported back to the calling agent"""

    status_code = 500
    rpc_code = -32000

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"type": type(self).__name__, "message": self.message}


class InvalidArguments(ToolError):
    """Tool arguments failed schema validation"""
    status_code = 400
    rpc_code = -32602

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnknownTool(ToolError):
    status_code = 404
    rpc_code = -32601

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ProviderError(ToolError):
    """Upstream telephony, generative-text or download failure"""
    status_code = 502
    rpc_code = -32001


class NoActiveRecording(ToolError):
    status_code = 409
    rpc_code = -32002

    def __init__(self, call_id: str):
        super().__init__(f"No active recordings found for call {call_id}")
        self.call_id = call_id


class EmptyInput(ToolError):
    status_code = 400
    rpc_code = -32003


class InvalidLength(ToolError):
    status_code = 400
    rpc_code = -32004


class ToolExecutionFailed(ToolError):
    """Catch-all for unexpected handler faults"""
    status_code = 500
    rpc_code = -32000

    def __init__(self, tool: str, message: str):
        super().__init__(f"Tool '{tool}' failed: {message}")
        self.tool = tool
