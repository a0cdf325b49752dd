"""Custom log formatters for the SOAP Test Utility.

This module provides specialized formatters for logging, including redaction
of credentials carried in SOAP header blocks.
"""

import logging
import re
from typing import List, Tuple

# Element and attribute names whose values are masked
SECRET_NAMES = r"(?:password|passwd|pwd|token|secret|apikey|api_key)"


class SecretRedactingFormatter(logging.Formatter):
    """Formatter that masks credentials in logged SOAP XML.

    Header blocks such as ``<AuthHeader><password>...</password></AuthHeader>``
    end up in the request debug output. With redaction enabled the text of
    credential elements and the value of credential attributes are replaced.

    Attributes:
        redact_secrets: Whether to enable redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = SecretRedactingFormatter(redact_secrets=True)
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_secrets: bool = False,
    ) -> None:
        """Initialize the SecretRedactingFormatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string (optional)
            redact_secrets: Whether to enable redaction
        """
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_secrets = redact_secrets

        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # <password>abc</password>, <ns:Token>abc</ns:Token>
            (
                re.compile(
                    rf"(<(?:[\w.-]+:)?{SECRET_NAMES}\b[^>]*>)[^<]*(</)",
                    re.IGNORECASE,
                ),
                r"\1[REDACTED]\2",
            ),
            # password="abc", token='abc'
            (
                re.compile(rf"(\b{SECRET_NAMES}\s*=\s*[\"'])[^\"']*([\"'])", re.IGNORECASE),
                r"\1[REDACTED]\2",
            ),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional redaction.

        Args:
            record: Log record to format

        Returns:
            Formatted log message with secrets masked if enabled
        """
        original = super().format(record)

        if self.redact_secrets:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)

        return original
