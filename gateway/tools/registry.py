"""Tool registry — decorator-based tool registration and lookup."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from ..errors import GatewayError, ToolNotFoundError

logger = logging.getLogger(__name__)


class NoArgs(BaseModel):
    """Argument model for tools that take no parameters."""


@dataclass
class ToolCallRequest:
    id: str
    name: str
    arguments: Optional[Dict[str, Any]]  # None when the model sent unparsable JSON
    raw_arguments: str = ""

    @classmethod
    def from_model(cls, call_id: str, name: str, raw_arguments: str) -> "ToolCallRequest":
        raw = raw_arguments or "{}"
        try:
            arguments = json.loads(raw)
        except json.JSONDecodeError:
            arguments = None
        if arguments is not None and not isinstance(arguments, dict):
            arguments = None
        return cls(id=call_id, name=name, arguments=arguments, raw_arguments=raw)


@dataclass
class ToolResult:
    tool: str
    call_id: str = ""
    output: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_type: Optional[str] = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_output(cls, tool: str, call_id: str, output: Dict[str, Any]) -> "ToolResult":
        # Handlers may report failure as data ({"error": ...}) instead of raising
        error = output.get("error")
        return cls(tool=tool, call_id=call_id, output=output,
                   error=str(error) if error else None,
                   error_type=output.get("error_type") if error else None)

    @classmethod
    def failure(cls, tool: str, call_id: str, exc: GatewayError) -> "ToolResult":
        return cls(tool=tool, call_id=call_id, output=exc.to_dict(),
                   error=exc.message, error_type=exc.error_type)

    def to_content(self) -> str:
        """JSON payload sent back to the model as the tool message."""
        payload = dict(self.output)
        if self.error is not None:
            payload.setdefault("error", self.error)
            if self.error_type:
                payload["error_type"] = self.error_type
        return json.dumps(payload, ensure_ascii=False, default=str)


@dataclass
class ToolDef:
    name: str
    description: str
    params: Type[BaseModel]
    handler: Callable[..., Awaitable[Dict[str, Any]]]
    category: str = ""

    def parameters_schema(self) -> Dict[str, Any]:
        schema = _strip_titles(self.params.model_json_schema())
        schema.setdefault("properties", {})
        return schema


def _strip_titles(node: Any) -> Any:
    """Drop pydantic's generated ``title`` keys; some providers reject them."""
    if isinstance(node, dict):
        return {k: _strip_titles(v) for k, v in node.items()
                if not (k == "title" and isinstance(v, str))}
    if isinstance(node, list):
        return [_strip_titles(v) for v in node]
    return node


class ToolRegistry:
    def __init__(self):
        self._tools: Dict[str, ToolDef] = {}
        self._frozen = False

    def register(self, tool: ToolDef):
        if self._frozen:
            raise RuntimeError(f"Tool registry is frozen; cannot register {tool.name}")
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool
        logger.info(f"Registered tool: {tool.name}")

    def freeze(self):
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_tool(self, name: str) -> Optional[ToolDef]:
        return self._tools.get(name)

    def lookup(self, name: str) -> ToolDef:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(f"Unknown tool: {name}", available=self.names())
        return tool

    def names(self) -> List[str]:
        return list(self._tools)

    def schemas(self) -> List[Dict[str, Any]]:
        """Function-tool schemas in registration order, as sent to the model."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters_schema(),
                },
            }
            for tool in self._tools.values()
        ]

    def tool_descriptions(self) -> List[Dict[str, Any]]:
        return [
            {"name": t.name, "description": t.description,
             "category": t.category, "parameters": t.parameters_schema()}
            for t in self._tools.values()
        ]


registry = ToolRegistry()


def register_tool(
    name: str,
    description: str = "",
    params: Optional[Type[BaseModel]] = None,
    category: str = "",
    target: Optional[ToolRegistry] = None,
):
    """Decorator to register a tool function."""
    def decorator(func):
        tool = ToolDef(
            name=name,
            description=description or func.__doc__ or "",
            params=params or NoArgs,
            handler=func,
            category=category,
        )
        (target or registry).register(tool)
        return func
    return decorator


def get_tool(name: str) -> Optional[ToolDef]:
    return registry.get_tool(name)


def tool_schemas() -> List[Dict[str, Any]]:
    return registry.schemas()
