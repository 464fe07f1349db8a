"""Custom log formatters for the SAML IdP.

This module provides specialized formatters for logging, including PII redaction.
"""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Custom formatter that redacts Personally Identifiable Information (PII) from log messages.

    Assertion logs mention subject identifiers and released claims; this
    formatter masks e-mail addresses, NameID values and attribute values when
    redaction is enabled.

    Attributes:
        redact_pii: Whether to enable PII redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = PIIRedactingFormatter(
        ...     fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        ...     redact_pii=True
        ... )
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        """Initialize the PIIRedactingFormatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string (optional)
            redact_pii: Whether to enable PII redaction
        """
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # E-mail addresses: jon@example.com
            (re.compile(r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b"), "[EMAIL-REDACTED]"),

            # NameID values: name_id=abc123, name_id='abc 123'
            (re.compile(r"name_id=([\"'])[^\"']*\1|name_id=\S+"), "name_id=[NAMEID-REDACTED]"),

            # NameID element content in logged XML
            (re.compile(r"(<(?:\w+:)?NameID\b[^>]*>)[^<]*(</)"), r"\1[NAMEID-REDACTED]\2"),

            # AttributeValue element content in logged XML
            (re.compile(r"(<(?:\w+:)?AttributeValue\b[^>]*>)[^<]*(</)"), r"\1[VALUE-REDACTED]\2"),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction.

        Args:
            record: Log record to format

        Returns:
            Formatted log message with PII redacted if enabled
        """
        original = super().format(record)

        if self.redact_pii:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)

        return original
