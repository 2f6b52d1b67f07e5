"""Named tool registration, argument validation and invocation"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError
import structlog

from app.errors import InvalidArguments, ToolError, ToolExecutionFailed, UnknownTool

logger = structlog.get_logger()

ToolHandler = Callable[[Any], Awaitable[Dict[str, Any]]]


@dataclass
class Tool:
    name: str
    description: str
    args_model: Type[BaseModel]
    handler: ToolHandler

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self.args_model.model_json_schema(by_alias=True)


def _invalid_arguments(error: ValidationError) -> InvalidArguments:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None

    if first["type"] == "missing":
        message = f"Missing required argument: {field}"
    elif first["type"] == "value_error" and not field:
        message = str(first["ctx"]["error"])
    elif field:
        message = f"Invalid argument '{field}': {first['msg']}"
    else:
        message = first["msg"]

    return InvalidArguments(message, field=field)


class ToolDispatcher:
    """
    Maps tool names to validated async handlers.

    Handlers receive an instance of the tool's argument model with defaults
    filled in. Errors raised as ToolError reach the caller unchanged; anything
    else, including a timeout, is reported as ToolExecutionFailed.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._tools: Dict[str, Tool] = {}

    def register(
        self,
        name: str,
        args_model: Type[BaseModel],
        handler: ToolHandler,
        description: str = "",
    ) -> Tool:
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")
        tool = Tool(name=name, description=description, args_model=args_model, handler=handler)
        self._tools[name] = tool
        return tool

    def tool(self, name: str, args_model: Type[BaseModel], description: str = ""):
        """Decorator form of register()"""
        def decorator(handler: ToolHandler) -> ToolHandler:
            self.register(name, args_model, handler, description)
            return handler
        return decorator

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def list_tools(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.input_schema,
            }
            for tool in self._tools.values()
        ]

    def validate(self, name: str, raw_args: Optional[Dict[str, Any]]) -> BaseModel:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownTool(name)

        if raw_args is None:
            raw_args = {}
        if not isinstance(raw_args, dict):
            raise InvalidArguments("Tool arguments must be an object")

        try:
            return tool.args_model.model_validate(raw_args)
        except ValidationError as e:
            raise _invalid_arguments(e) from e

    async def invoke(self, name: str, raw_args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        args = self.validate(name, raw_args)
        handler = self._tools[name].handler

        logger.info("Tool invoked", tool=name)
        try:
            if self.timeout:
                return await asyncio.wait_for(handler(args), timeout=self.timeout)
            return await handler(args)
        except ToolError as e:
            logger.warning("Tool failed", tool=name, error_type=type(e).__name__, error=e.message)
            raise
        except asyncio.TimeoutError as e:
            logger.error("Tool timed out", tool=name, timeout=self.timeout)
            raise ToolExecutionFailed(name, f"timed out after {self.timeout}s") from e
        except Exception as e:
            logger.error("Tool raised unexpectedly", tool=name, error=str(e))
            raise ToolExecutionFailed(name, str(e)) from e
