"""
Log formatters referenced from ``LOGGING``.

Application code logs through the standard ``logging`` module with
``extra={...}`` context; the JSON formatter renders each record, its extra
fields and any traceback as one JSON object per line.
"""

import structlog


def json_formatter():
    """Build the ``json`` formatter used by the production log files."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
            structlog.processors.TimeStamper(fmt="iso", key="time"),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
    )
