"""Diagnostic logging setup.

Detection stages log through ``logging.getLogger(__name__)`` and attach their
context with ``extra={"page": ..., "detector": ..., "stage": ...}``. The
handler installed here renders those fields so every event can be traced back
to the page and detector that produced it.
"""

import logging

LOG_FORMAT = (
    "%(asctime)s %(levelname)-7s %(name)s "
    "[page=%(page)s detector=%(detector)s stage=%(stage)s] %(message)s"
)

CONTEXT_FIELDS = ("page", "detector", "stage")


class ContextDefaultsFilter(logging.Filter):
    """Fill in missing context fields so foreign records still format."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return True


def configure_logging(level: str | int = "INFO") -> None:
    """Install the diagnostic handler on the ``fieldscan`` logger."""
    logger = logging.getLogger("fieldscan")
    logger.setLevel(level)

    if any(getattr(h, "_fieldscan", False) for h in logger.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(ContextDefaultsFilter())
    handler._fieldscan = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
