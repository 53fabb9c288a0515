"""Shared fixtures: a throwaway project folder and a scripted fake model."""
import copy
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from gateway.config import settings
from gateway.session import RequestSession


# ──────────────────────────────────────────────────────────
# Project folder
# ──────────────────────────────────────────────────────────

@pytest.fixture
def workspace(tmp_path, monkeypatch):
    root = tmp_path / "client"
    (root / "src" / "components").mkdir(parents=True)
    (root / "node_modules" / "react").mkdir(parents=True)
    (root / "src" / "main.jsx").write_text("import App from './App'\nrender(<App />)\n")
    (root / "src" / "components" / "App.jsx").write_text(
        "export default function App() {\n  return <h1>Hello TODO</h1>\n}\n")
    (root / "package.json").write_text('{"name": "client"}\n')
    (root / "node_modules" / "react" / "index.js").write_text("// TODO vendored\n")
    (tmp_path / "secret.txt").write_text("outside the project\n")
    monkeypatch.setattr(settings, "workspace_root", str(root))
    return root


@pytest.fixture
def session():
    return RequestSession()


# ──────────────────────────────────────────────────────────
# Fake model
# ──────────────────────────────────────────────────────────

def text_chunk(text, finish_reason=None):
    delta = SimpleNamespace(content=text, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)])


def tool_chunk(name, arguments=None, call_id="call_1", index=0, raw=None):
    fn = SimpleNamespace(name=name, arguments=raw if raw is not None else json.dumps(arguments or {}))
    tc = SimpleNamespace(index=index, id=call_id, function=fn)
    delta = SimpleNamespace(content=None, tool_calls=[tc])
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=None)])


def finish_chunk(reason="stop"):
    delta = SimpleNamespace(content=None, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=reason)])


def text_turn(*parts):
    return [text_chunk(p) for p in parts] + [finish_chunk("stop")]


def tool_turn(*calls):
    """calls: (name, arguments) pairs, one tool call each."""
    chunks = [tool_chunk(name, args, call_id=f"call_{i}", index=i)
              for i, (name, args) in enumerate(calls)]
    return chunks + [finish_chunk("tool_calls")]


async def _aiter(chunks):
    for chunk in chunks:
        yield chunk


class FakeModel:
    """Stands in for AsyncOpenAI; replays scripted turns and records each request.

    ``turns`` is a list of chunk lists, or an exception to raise for that call.
    When the script runs out, ``repeat_last`` keeps replaying the final turn.
    """

    def __init__(self, turns, repeat_last=False):
        self.turns = list(turns)
        self.repeat_last = repeat_last
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.requests.append(copy.deepcopy(kwargs))
        index = len(self.requests) - 1
        if index >= len(self.turns):
            if not self.repeat_last:
                raise AssertionError("model called more times than scripted")
            index = len(self.turns) - 1
        turn = self.turns[index]
        if isinstance(turn, Exception):
            raise turn
        return _aiter(turn)

    @property
    def calls(self):
        return len(self.requests)

    def tool_messages(self, request_index=-1):
        return [m for m in self.requests[request_index]["messages"] if m["role"] == "tool"]


@pytest.fixture
def fake_model(monkeypatch):
    """Install a FakeModel: ``model = fake_model([turn, ...])``."""
    def install(turns, repeat_last=False):
        model = FakeModel(turns, repeat_last=repeat_last)
        monkeypatch.setattr("gateway.llm._get_client", lambda: model)
        return model
    return install


@pytest.fixture
def mock_request():
    req = MagicMock()
    req.query_params = {}
    req.headers = {}
    return req
