"""
JSON logging for the Markov dictionary.

Records are written as one JSON object per line. Anything passed through
``extra={"metrics": {...}}`` (parse statistics, paths, context counts) is
emitted under the "metrics" key.
"""

from datetime import datetime
import os
import logging
import json
import sys

TEXT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


class JsonLogger(logging.Formatter):
    """Formatter that outputs JSON strings after parsing the log record."""

    def format(self, record):
        """
        Format the log record as a JSON string.

        Args:
            record: The log record to format

        Returns:
            str: JSON formatted log string
        """
        log_data = {
            'timestamp': datetime.now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'path': record.pathname,
            'line': record.lineno,
            'function': record.funcName
        }

        if hasattr(record, 'metrics'):
            log_data['metrics'] = record.metrics

        if record.exc_info:
            log_data['exception'] = {
                'type': str(record.exc_info[0].__name__),
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        # Counts and contexts are plain JSON types, anything else is stringified
        return json.dumps(log_data, default=str)


def setup_log_file(log_file_path):
    """
    Make sure the directory of a log file exists.

    Returns:
        str: Absolute path to the log file
    """
    log_file_path = os.path.abspath(log_file_path)
    os.makedirs(os.path.dirname(log_file_path), exist_ok=True)
    return log_file_path


def _console_handler(console_json):
    # stderr, so generated text on stdout stays clean
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.INFO)
    if console_json:
        handler.setFormatter(JsonLogger())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def _file_handler(log_file):
    handler = logging.FileHandler(setup_log_file(log_file), encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JsonLogger())
    return handler


def get_logger(logger_name, log_file=None, clear_existing=True, console_json=True):
    """
    Get a logger writing INFO to the console and, optionally, DEBUG as JSON to a file.

    Args:
        logger_name (str): Name for the logger
        log_file (str, optional): Path to the log file
        clear_existing (bool): Whether to close and drop existing handlers
        console_json (bool): Whether to use JSON formatting for console output

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)

    if clear_existing:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    if logger.handlers:
        return logger

    logger.addHandler(_console_handler(console_json))
    if log_file is not None:
        logger.addHandler(_file_handler(log_file))

    return logger
