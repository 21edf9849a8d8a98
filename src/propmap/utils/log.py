from __future__ import annotations

import logging
import re


_SECRET_PARAM = re.compile(r"(apikey|api_key|key)=[^&\s]+", re.IGNORECASE)


class RedactingFormatter(logging.Formatter):
    """Formatter that masks API keys embedded in logged URLs.

    ``requests`` exceptions quote the full request URL, which for OpenTripMap
    includes the ``apikey`` query parameter.
    """

    def format(self, record: logging.LogRecord) -> str:
        return _SECRET_PARAM.sub(r"\1=***", super().format(record))


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(RedactingFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger()
    for h in list(root.handlers):
        if isinstance(h.formatter, RedactingFormatter):
            root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level.upper())
