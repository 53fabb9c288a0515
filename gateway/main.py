"""HTTP surface: liveness, tool listing, and the streaming /generate endpoint."""
import logging
from typing import List, Literal, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, model_validator

from .config import settings
from .orchestrator import run_agent
from .session import RequestSession
from .streaming import StreamResponder
from .tools import registry

logger = logging.getLogger(__name__)

app = FastAPI(title="Agentic Gateway")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class Message(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class GenerateRequest(BaseModel):
    prompt: Optional[str] = None
    messages: Optional[List[Message]] = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _prompt_or_messages(self):
        if not self.messages and not (self.prompt and self.prompt.strip()):
            raise ValueError("provide a non-empty 'prompt' or 'messages'")
        return self

    def conversation(self) -> List[dict]:
        if self.messages:
            return [m.model_dump() for m in self.messages]
        return [{"role": "user", "content": self.prompt}]


def choose_framing(request: Request) -> str:
    if request.query_params.get("stream") in ("sse", "text"):
        return request.query_params["stream"]
    if "text/event-stream" in request.headers.get("accept", ""):
        return "sse"
    return settings.stream_framing


@app.get("/")
async def root():
    return {"message": "Hello, World!"}


@app.get("/tools")
async def list_tools():
    return {"tools": registry.tool_descriptions()}


@app.post("/generate")
async def generate(payload: GenerateRequest, request: Request):
    session = RequestSession(framing=choose_framing(request))
    messages = payload.conversation()
    logger.info(f"[{session.request_id}] /generate: {len(messages)} messages, "
                f"framing={session.framing}, last={messages[-1]['content'][:80]!r}")

    responder = StreamResponder(
        framing=session.framing, max_pending=settings.stream_max_pending, session=session)
    return responder.open(run_agent(messages, session))
