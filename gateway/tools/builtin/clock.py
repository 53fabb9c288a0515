"""Clock tool — current local time and date, formatted per locale."""
import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

from ..registry import register_tool

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"

# locale -> (time pattern, date pattern); 12-hour clocks use {h12}/{ampm}
_FORMATS: Dict[str, Tuple[str, str]] = {
    "en-US": ("{h12}:%M:%S {ampm}", "{m}/{d}/%Y"),
    "en-GB": ("%H:%M:%S", "%d/%m/%Y"),
    "en-AU": ("{h12}:%M:%S {ampm_lower}", "%d/%m/%Y"),
    "en-IN": ("{h12}:%M:%S {ampm_lower}", "{d}/{m}/%Y"),
    "fr-FR": ("%H:%M:%S", "%d/%m/%Y"),
    "de-DE": ("%H:%M:%S", "{d}.{m}.%Y"),
    "es-ES": ("%H:%M:%S", "{d}/{m}/%Y"),
    "it-IT": ("%H:%M:%S", "{d}/{m}/%Y"),
    "pt-BR": ("%H:%M:%S", "%d/%m/%Y"),
    "nl-NL": ("%H:%M:%S", "{d}-{m}-%Y"),
    "ru-RU": ("%H:%M:%S", "%d.%m.%Y"),
    "ja-JP": ("%H:%M:%S", "%Y/{m}/{d}"),
    "zh-CN": ("%H:%M:%S", "%Y/{m}/{d}"),
    "ko-KR": ("%p {h12}:%M:%S", "%Y. {m}. {d}."),
    "sv-SE": ("%H:%M:%S", "%Y-%m-%d"),
}

# bare language -> default region
_LANGUAGE_DEFAULTS = {tag.split("-")[0]: tag for tag in reversed(list(_FORMATS))}
_LANGUAGE_DEFAULTS["en"] = "en-US"


def resolve_locale(tag: Optional[str]) -> str:
    """Map a BCP 47 tag onto a supported locale, falling back by language then to en-US."""
    if not tag:
        return DEFAULT_LOCALE
    parts = tag.replace("_", "-").split("-")
    normalized = parts[0].lower()
    if len(parts) > 1:
        normalized += "-" + parts[-1].upper()
    if normalized in _FORMATS:
        return normalized
    return _LANGUAGE_DEFAULTS.get(parts[0].lower(), DEFAULT_LOCALE)


def _render(pattern: str, now: datetime) -> str:
    hour12 = now.hour % 12 or 12
    ampm = "AM" if now.hour < 12 else "PM"
    text = pattern.format(
        h12=hour12, ampm=ampm, ampm_lower=ampm.lower(), m=now.month, d=now.day,
    )
    if "%p" in text:
        text = text.replace("%p", "오전" if now.hour < 12 else "오후")
    return now.strftime(text)


def format_datetime(now: datetime, tag: Optional[str] = DEFAULT_LOCALE) -> Dict[str, str]:
    locale = resolve_locale(tag)
    time_pattern, date_pattern = _FORMATS[locale]
    return {"time": _render(time_pattern, now), "date": _render(date_pattern, now), "locale": locale}


class ClockArgs(BaseModel):
    format: str = Field(
        DEFAULT_LOCALE,
        description="BCP 47 language tag used to format the output, e.g. 'en-US' or 'fr-FR'.",
    )


@register_tool(
    "get_current_datetime",
    description=(
        "Returns the current local time and date. Use this tool when the user asks for the "
        "current time or date. Optionally provide 'format' as a BCP 47 language tag "
        "(e.g. 'en-US', 'fr-FR'); 'en-US' is used by default."
    ),
    params=ClockArgs,
    category="info",
)
async def get_current_datetime(args: ClockArgs, session=None, **kwargs) -> dict:
    result = format_datetime(datetime.now(), args.format)
    if result["locale"] != (args.format or DEFAULT_LOCALE):
        logger.debug(f"Clock: locale {args.format!r} formatted as {result['locale']}")
    return result
