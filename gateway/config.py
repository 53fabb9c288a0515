from pydantic import BaseModel, Field
import os
import logging
from pathlib import Path
from typing import List, Literal

logger = logging.getLogger(__name__)

# Load .env file if it exists (before reading os.getenv)
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                # Only set if not already in environment (env vars take precedence)
                if key not in os.environ:
                    os.environ[key] = value


def _sanitize_ascii(val: str) -> str:
    """Strip non-ASCII characters from config values (prevents encoding errors)"""
    return val.encode('ascii', errors='ignore').decode('ascii').strip()


def _csv(val: str) -> List[str]:
    return [item.strip() for item in val.split(",") if item.strip()]


def mask_secret(value: str) -> str:
    return '***' + value[-4:] if len(value) > 4 else 'EMPTY'


class Settings(BaseModel):
    # Network
    host: str = os.getenv("GATEWAY_HOST", "0.0.0.0")
    port: int = int(os.getenv("GATEWAY_PORT", "3000"))

    # Model service (any OpenAI-compatible chat completions endpoint)
    openai_api_key: str = _sanitize_ascii(os.getenv("GEMINI_API_KEY", os.getenv("OPENAI_API_KEY", "")))
    openai_base_url: str = _sanitize_ascii(
        os.getenv("OPENAI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"))
    chat_model: str = _sanitize_ascii(os.getenv("CHAT_MODEL", "gemini-2.5-flash"))
    model_timeout_s: float = float(os.getenv("MODEL_TIMEOUT_S", "60"))

    # Orchestration
    max_steps: int = int(os.getenv("MAX_STEPS", "5"))

    # Project subtree the file/search/lint/command tools operate on
    workspace_root: str = os.getenv("WORKSPACE_ROOT", str(Path.cwd().parent / "client"))
    workspace_exclude_dir: str = os.getenv("WORKSPACE_EXCLUDE_DIR", "node_modules")

    # Weather
    weather_api_key: str = _sanitize_ascii(os.getenv("WEATHER_API_KEY", ""))
    weather_base_url: str = os.getenv("WEATHER_BASE_URL", "http://api.weatherapi.com/v1")

    # Terminal command sandbox
    command_denylist: List[str] = _csv(os.getenv(
        "COMMAND_DENYLIST", "sudo,su,shutdown,reboot,halt,poweroff,mkfs,dd"))
    command_allowlist: List[str] = _csv(os.getenv("COMMAND_ALLOWLIST", ""))

    # Lint
    lint_command: str = os.getenv("LINT_COMMAND", "npx eslint . --format json")
    lint_timeout_s: float = float(os.getenv("LINT_TIMEOUT_S", "60"))

    # Output caps
    max_tool_output_chars: int = int(os.getenv("MAX_TOOL_OUTPUT_CHARS", "20000"))
    max_search_matches: int = int(os.getenv("MAX_SEARCH_MATCHES", "200"))

    # Streaming
    # Any other value fails at startup
    stream_framing: Literal["text", "sse"] = Field(
        default=os.getenv("STREAM_FRAMING", "text"), validate_default=True)
    stream_max_pending: int = int(os.getenv("STREAM_MAX_PENDING", "64"))


settings = Settings()

# Log config for debugging
logger.info(f"Config: model → {settings.openai_base_url}, model={settings.chat_model} "
            f"(key={mask_secret(settings.openai_api_key)})")
logger.info(f"Config: workspace={settings.workspace_root}, max_steps={settings.max_steps}")
