"""Logging for Gap Chef.

One stdout handler per named logger, text or JSON, chosen from the environment:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Request context goes through ``extra=`` using the keys in ``CONTEXT_FIELDS``.
"""

import json
import logging
import os
import sys

CONTEXT_FIELDS = ("request_id", "recipe_count", "ingredient_count")

# level -> (ANSI color, icon)
LEVEL_STYLES = {
    "DEBUG": ("\033[36m", "🔍"),
    "INFO": ("\033[32m", "🍳"),
    "WARNING": ("\033[33m", "⚠️"),
    "ERROR": ("\033[31m", "❌"),
}
RESET = "\033[0m"


def _context(record: logging.LogRecord) -> dict:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with request context flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class RichTextFormatter(logging.Formatter):
    """Colored single-line text; a request id, when present, prefixes the message."""

    def format(self, record: logging.LogRecord) -> str:
        color, icon = LEVEL_STYLES.get(record.levelname, (RESET, ""))
        request_id = getattr(record, "request_id", None)
        body = f"[{request_id}] {record.getMessage()}" if request_id else record.getMessage()

        line = (
            f"{color}{icon} {self.formatTime(record, '%Y-%m-%d %H:%M:%S')} "
            f"{record.levelname:<8} {record.name:<20} {body}{RESET}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching the stdout handler on first use.

    Args:
        name: Logger name.

    Returns:
        Logger with exactly one handler, however often this is called.
    """
    named = logging.getLogger(name)
    if named.handlers:
        return named

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    json_output = os.getenv("LOG_TYPE", "text").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_output else RichTextFormatter())

    named.setLevel(level)
    named.addHandler(handler)
    return named


logger = get_logger("gap_chef")

# Client libraries only surface warnings
for _library in ("google.genai", "httpx", "aiohttp"):
    logging.getLogger(_library).setLevel(logging.WARNING)
