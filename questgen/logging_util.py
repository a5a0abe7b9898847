from __future__ import annotations

import os
import logging

# Logging configuration
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_LEVEL = getattr(logging, os.getenv('QUESTGEN_LOG_LEVEL', 'WARNING').upper(), logging.WARNING)
LOG_FILE = os.getenv('QUESTGEN_LOG_FILE')


# Formatter that strips the package prefix from logger names
class ShortNameFormatter(logging.Formatter):
    def format(self, record):
        record.name = record.name.replace("questgen.", "")
        return super().format(record)


# Stream handler
stream_handler = logging.StreamHandler()
stream_handler.setFormatter(ShortNameFormatter(LOG_FORMAT))

# File handler, only when a log file is configured
file_handler = None
if LOG_FILE:
    log_dir = os.path.dirname(LOG_FILE)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)
    file_handler = logging.FileHandler(LOG_FILE, mode='a', encoding='utf-8')
    file_handler.setFormatter(ShortNameFormatter(LOG_FORMAT))


# Logger assembly helper (idempotent)
def get_logger(name: str = 'questgen') -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(LOG_LEVEL)
        logger.addHandler(stream_handler)
        if file_handler is not None:
            logger.addHandler(file_handler)
    return logger
