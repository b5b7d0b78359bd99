"""
Log sanitization filter to keep GitLab credentials out of log output.

The sync services log request URLs, client errors and database failures; any of
those may carry an access token or a connection string with a password. The
filter rewrites such values before a record reaches a handler.
"""

import logging
import re
import traceback
from typing import List, Optional, Pattern, Tuple


class SensitiveDataFilter(logging.Filter):
    """
    Logging filter that redacts credentials from log records.

    Patterns are applied in order; more specific token formats come first so that
    the generic `token=` rule does not partially consume them.
    """

    SENSITIVE_PATTERNS: List[Tuple[Pattern[str], str]] = [
        # GitLab personal/project/group access tokens
        (re.compile(r"\bglpat-[A-Za-z0-9_\-]{10,}"), "GITLAB_TOKEN_REDACTED"),
        # PRIVATE-TOKEN header values
        (re.compile(r'(PRIVATE-TOKEN)["\']?\s*[:=]\s*["\']?([^\s"\',}]+)["\']?', re.IGNORECASE), r"\1: REDACTED"),
        # Bearer tokens in Authorization headers
        (
            re.compile(r'(Authorization)["\']?\s*[:=]\s*["\']?(Bearer\s+)?([^\s"\',}]+)["\']?', re.IGNORECASE),
            r"\1: Bearer REDACTED",
        ),
        # Standalone Bearer tokens
        (re.compile(r"\b(Bearer\s+[A-Za-z0-9\-_\.]+)", re.IGNORECASE), "Bearer REDACTED"),
        # token / secret query parameters and key=value pairs
        (
            re.compile(r'(access_token|private_token|token|secret)["\']?\s*[:=]\s*["\']?([^\s"\'&,}]+)["\']?', re.IGNORECASE),
            r"\1=REDACTED",
        ),
        # Database connection strings with credentials
        (
            re.compile(r"(postgres|postgresql|postgresql\+asyncpg)://[^@\s]+@[^\s]+", re.IGNORECASE),
            r"\1://REDACTED@REDACTED",
        ),
    ]

    def __init__(self, name: str = ""):
        super().__init__(name)

    def sanitize(self, message: str) -> str:
        for pattern, replacement in self.SENSITIVE_PATTERNS:
            message = pattern.sub(replacement, message)
        return message

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Redact sensitive values in a log record.

        Always returns True; records are rewritten, never dropped.
        """
        record.msg = self.sanitize(str(record.getMessage()))
        record.args = ()  # Already formatted above

        if record.exc_info and record.exc_info[0] is not None:
            exc_lines = traceback.format_exception(*record.exc_info)
            record.exc_text = "".join(self.sanitize(line) for line in exc_lines).strip()

        return True


def add_sensitive_data_filter(logger: Optional[logging.Logger] = None) -> None:
    """Add the sensitive data filter to a logger, the root logger by default."""
    if logger is None:
        logger = logging.getLogger()

    for existing in logger.filters:
        if isinstance(existing, SensitiveDataFilter):
            return

    logger.addFilter(SensitiveDataFilter())


def configure_secure_logging() -> None:
    """Install the sensitive data filter on the root logger and its handlers."""
    add_sensitive_data_filter()

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if not any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
            handler.addFilter(SensitiveDataFilter())


def configure_logging(level: str = "INFO") -> None:
    """Basic process-wide logging setup used by the API and the CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    configure_secure_logging()
