"""logging utilities with rich support"""

import os
import inspect
import functools
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.theme import Theme

from lsppp.utils.config_utils import get_config_value
from lsppp.utils.singleton_utils import SingletonInstance


# custom theme for log levels
custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "debug": "dim white",
})

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


class Logger(SingletonInstance):
    """singleton logger class with rich support

    stdout belongs to the MCP stdio channel, so the console writes to stderr.
    """

    def __init__(
        self,
        prefix: str = "lsppp",
        log_dir: Optional[str] = None,
        level: Optional[str] = None,
    ):
        """initialize logger

        Args:
            prefix: log message prefix
            log_dir: directory for log files (empty disables the file log)
            level: minimum level name (debug, info, warning, error)
        """
        self.prefix = prefix
        self.log_dir = log_dir if log_dir is not None else get_config_value("logging", "log_dir")
        self.level = LEVELS.get((level or get_config_value("logging", "level") or "info").lower(), 20)
        self.console = Console(theme=custom_theme, stderr=True)
        self.log_file: Optional[str] = None
        self._ensure_log_dir()

    def _ensure_log_dir(self):
        """create log directory if not exists"""
        if not self.log_dir:
            return
        if not os.path.exists(self.log_dir):
            os.makedirs(self.log_dir)
        self.log_file = os.path.join(self.log_dir, f"{self.prefix}.log")

    def _format(self, level: str, message: str) -> str:
        """format log message"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return f"[{timestamp}] [{self.prefix}] {level}: {message}"

    def _emit(self, level: str, style: str, message: str):
        if LEVELS[style] < self.level:
            return
        line = self._format(level, message)
        # markup off: protocol payloads are full of [brackets]
        self.console.print(line, style=style, markup=False, highlight=False)
        if self.log_file:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def info(self, message: str):
        """log info level message"""
        self._emit("INFO", "info", message)

    def error(self, message: str):
        """log error level message"""
        self._emit("ERROR", "error", message)

    def warning(self, message: str):
        """log warning level message"""
        self._emit("WARNING", "warning", message)

    def debug(self, message: str):
        """log debug level message"""
        self._emit("DEBUG", "debug", message)


def logging_func(desc: str = ""):
    """decorator for function logging

    works for both plain and async functions.

    Args:
        desc: description of the function
    """
    def decorator(function):
        if inspect.iscoroutinefunction(function):
            @functools.wraps(function)
            async def async_wrapper(*args, **kwargs):
                Logger.instance().info(f"[start] {function.__name__} - {desc}")
                result = await function(*args, **kwargs)
                Logger.instance().info(f"[end] {function.__name__}")
                return result
            return async_wrapper

        @functools.wraps(function)
        def wrapper(*args, **kwargs):
            Logger.instance().info(f"[start] {function.__name__} - {desc}")
            result = function(*args, **kwargs)
            Logger.instance().info(f"[end] {function.__name__}")
            return result
        return wrapper
    return decorator
