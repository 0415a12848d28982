"""
Logging configuration for weightvec.

Library modules only emit records through ``logging.getLogger(__name__)``;
capacity resizes and exp-table builds are DEBUG records that carry their
numbers as record attributes. ``setup_logging`` is what the CLI (or an
application) calls to route them: a short console format for humans and,
optionally, a JSON-lines file that keeps every event field.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

# Record attributes copied into JSON output when present
EVENT_FIELDS = ('operation', 'old_capacity', 'capacity', 'count', 'tolerance', 'bins')


class JSONLinesFormatter(logging.Formatter):
    """One JSON object per record, including vector event fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for key in EVENT_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)

        context = getattr(record, 'context', None)
        if context:
            entry['context'] = context

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(
    level: str = 'WARNING',
    log_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    name: str = 'weightvec',
) -> logging.Logger:
    """
    Configure the weightvec logger.

    Args:
        level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: JSON-lines file that receives every record down to DEBUG
        console: Write records at ``level`` and above to stderr
        name: Logger to configure

    Returns:
        The configured logger
    """
    console_level = getattr(logging, level.upper())
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = False
    # the file wants resize and table events even when the console is quiet
    logger.setLevel(logging.DEBUG if log_file else console_level)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
        logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONLinesFormatter())
        logger.addHandler(file_handler)

    return logger


def log_operation(logger: logging.Logger, operation: str, **context):
    """Log the start of a user-facing operation with its parameters."""
    logger.info("Starting %s", operation, extra={'operation': operation, 'context': context})
