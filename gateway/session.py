"""Per-request state for one /generate call."""
import time
import uuid
from typing import List


class RequestSession:
    """Request-scoped context handed to the orchestrator and every tool.

    Nothing in here is shared between requests; the request id is the log
    prefix so concurrent requests stay distinguishable in the log.
    """

    def __init__(self, framing: str = "text"):
        self.request_id = str(uuid.uuid4())[:8]
        self.framing = framing
        self.steps = 0
        self.tools_used: List[str] = []
        self.cancelled = False

        now = time.monotonic()
        self.started_time = now
        self.last_activity_time = now

    def touch(self):
        """Update last activity timestamp."""
        self.last_activity_time = time.monotonic()

    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started_time

    def record_tool(self, name: str):
        self.tools_used.append(name)
        self.touch()

    def idle_seconds(self) -> float:
        return time.monotonic() - self.last_activity_time
