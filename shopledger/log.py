"""
Structured Logging

DESIGN DECISION: All modules log through structlog with event-style
messages ("order_saved", "vendor_transactions_synced") and keyword context.
Output is JSON so a backup or sync problem can be traced after the fact.
"""

import logging

import structlog


def configure_logging(debug: bool = False) -> None:
    """
    Configure structlog on top of the standard library logger.

    Call once at application start. Safe to call again (e.g. after a
    settings reload).
    """
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """Get a named structlog logger."""
    return structlog.get_logger(name)
