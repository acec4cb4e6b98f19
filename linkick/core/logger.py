"""
Logging setup.

Each module creates one `logger = Logger("<Component>")`. All of them write to
stdout and, when LOG_FILE is set and its directory exists, to one shared file.
"""

import logging
import os
import sys
from typing import List, Optional

from linkick.core.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Logger:
    _handlers: Optional[List[logging.Handler]] = None

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"linkick.{name}")
        self.logger.setLevel(settings.LOG_LEVEL.upper())

        # Prevent adding multiple handlers if already configured
        if not self.logger.handlers:
            for handler in Logger.shared_handlers():
                self.logger.addHandler(handler)

    @classmethod
    def shared_handlers(cls) -> List[logging.Handler]:
        if cls._handlers is not None:
            return cls._handlers

        formatter = logging.Formatter(LOG_FORMAT)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        cls._handlers = [console_handler]

        path = settings.LOG_FILE
        if path and os.path.isdir(os.path.dirname(os.path.abspath(path))):
            try:
                file_handler = logging.FileHandler(path)
            except OSError as e:
                sys.stderr.write(f"LinKick: not logging to {path}: {e}\n")
            else:
                file_handler.setFormatter(formatter)
                cls._handlers.append(file_handler)
        return cls._handlers

    def info(self, msg: str):
        self.logger.info(msg)

    def warn(self, msg: str):
        self.logger.warning(msg)

    def error(self, msg: str, exc: Exception = None):
        self.logger.error(msg, exc_info=exc)

    def debug(self, msg: str):
        self.logger.debug(msg)
