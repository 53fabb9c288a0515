"""Agentic inference gateway: model ↔ tool orchestration streamed over HTTP."""
__version__ = "0.1.0"
