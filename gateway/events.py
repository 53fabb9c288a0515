from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional, Union


class TextDelta(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    text: str


class ToolInvoked(BaseModel):
    type: Literal["tool_invoked"] = "tool_invoked"
    call_id: str
    name: str
    arguments: Optional[Dict[str, Any]] = None


class ToolCompleted(BaseModel):
    type: Literal["tool_completed"] = "tool_completed"
    call_id: str
    name: str
    ok: bool
    error: Optional[str] = None
    elapsed_ms: int = 0


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


class Done(BaseModel):
    type: Literal["done"] = "done"
    steps: int = 0
    tools_used: List[str] = Field(default_factory=list)


StreamEvent = Union[TextDelta, ToolInvoked, ToolCompleted, ErrorEvent, Done]
