# Copyright (c) 2025, NVIDIA CORPORATION.  All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import copy
import json
import logging
import logging.config
import os
from typing import Union

DEFAULT_LOG_JSON = "log_config.json"


class LogMode:
    FULL = "full"
    CONCISE = "concise"
    VERBOSE = "verbose"


# Predefined log dicts based from DEFAULT_LOG_JSON
with open(os.path.join(os.path.dirname(__file__), DEFAULT_LOG_JSON), "r") as f:
    default_log_dict = json.load(f)

concise_log_dict = copy.deepcopy(default_log_dict)
concise_log_dict["formatters"]["consoleFormatter"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
concise_log_dict["handlers"]["consoleHandler"]["filters"] = ["LocalPKIFilter"]

verbose_log_dict = copy.deepcopy(default_log_dict)
verbose_log_dict["formatters"]["consoleFormatter"]["fmt"] = "%(asctime)s - %(fullName)s - %(levelname)s - %(message)s"
verbose_log_dict["root"]["level"] = "DEBUG"

logmode_config_dict = {
    LogMode.FULL: default_log_dict,
    LogMode.CONCISE: concise_log_dict,
    LogMode.VERBOSE: verbose_log_dict,
}


class ANSIColor:
    # SGR codes of the colors used for log levels
    COLORS = {
        "grey": "38",
        "yellow": "33",
        "red": "31",
        "bold_red": "31;1",
        "reset": "0",
    }

    DEFAULT_LEVEL_COLORS = {
        "NOTSET": COLORS["grey"],
        "DEBUG": COLORS["grey"],
        "INFO": COLORS["grey"],
        "WARNING": COLORS["yellow"],
        "ERROR": COLORS["red"],
        "CRITICAL": COLORS["bold_red"],
    }

    @classmethod
    def colorize(cls, text: str, color: str) -> str:
        """Wrap text in the escape sequence of color.

        Args:
            text: text to colorize
            color: an SGR code such as "31;1", or a key of ANSIColor.COLORS

        Returns: the colorized text, reset at the end
        """
        if not any(c.isdigit() for c in color):
            color = cls.COLORS.get(color.lower(), cls.COLORS["reset"])
        return f"\x1b[{color}m{text}\x1b[{cls.COLORS['reset']}m"


class BaseFormatter(logging.Formatter):
    def __init__(self, fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=None, style="%"):
        """Formatter that shortens logger names.

        On a copy of each record, `name` is cut to its last component and the
        dotted name is kept as `fullName`, so fmt can use either.
        """
        self.fmt = fmt
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)

    def format(self, record):
        self.record = copy.copy(record)
        if not hasattr(self.record, "fullName"):
            self.record.fullName = self.record.name
            self.record.name = self.record.name.rsplit(".", 1)[-1]
        return super().format(self.record)


class ColorFormatter(BaseFormatter):
    def __init__(
        self,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt=None,
        style="%",
        level_colors=None,
    ):
        """BaseFormatter that colors each line by its level.

        Args:
            level_colors: levelname to SGR code; defaults to ANSIColor.DEFAULT_LEVEL_COLORS
        """
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self.level_colors = level_colors if level_colors is not None else ANSIColor.DEFAULT_LEVEL_COLORS

    def format(self, record):
        line = super().format(record)
        return ANSIColor.colorize(line, self.level_colors.get(self.record.levelname, "reset"))


class LoggerNameFilter(logging.Filter):
    def __init__(self, logger_names=None, exclude_logger_names=None, allow_all_error_logs=True):
        """Pass only records of the given logger hierarchies.

        Args:
            logger_names: logger name prefixes to pass; defaults to ["localpki"]
            exclude_logger_names: prefixes to drop, checked before logger_names
            allow_all_error_logs: pass every record above INFO regardless of its logger
        """
        super().__init__()
        self.logger_names = logger_names if logger_names is not None else ["localpki"]
        self.exclude_logger_names = exclude_logger_names or []
        self.allow_all_error_logs = allow_all_error_logs

    def filter(self, record):
        if self.allow_all_error_logs and record.levelno > logging.INFO:
            return True
        name = getattr(record, "fullName", record.name)
        if self.matches_name(name, self.exclude_logger_names):
            return False
        return self.matches_name(name, self.logger_names)

    def matches_name(self, name, logger_names) -> bool:
        return any(name.startswith(n) or name.rsplit(".", 1)[-1] == n for n in logger_names)


def get_obj_logger(obj) -> logging.Logger:
    """Logger named after the module and class of obj (or of obj itself if it is a class)."""
    if isinstance(obj, type):
        return logging.getLogger(f"{obj.__module__}.{obj.__qualname__}")
    if obj:
        return logging.getLogger(f"{obj.__module__}.{obj.__class__.__qualname__}")
    return None


def apply_log_config(dict_config):
    logging.config.dictConfig(copy.deepcopy(dict_config))


def configure_logging(config: Union[dict, str] = LogMode.CONCISE):
    """Configure logging from a dict config, a json file, a LogMode or a level.

    Args:
        config: a logging dict config, the path of a json file holding one, one of
            the LogMode values, or a level name/number such as "DEBUG" or "10"

    Raises:
        ValueError: if config is a string that is neither a mode, a file nor a valid level

    """
    if isinstance(config, dict):
        apply_log_config(config)
    elif isinstance(config, str):
        if log_config := logmode_config_dict.get(config):
            apply_log_config(log_config)
            return

        if os.path.isfile(config):
            with open(config, "r") as f:
                dict_config = json.load(f)

            apply_log_config(dict_config)
        else:
            # If logging is not yet configured, use default config
            if not logging.getLogger().hasHandlers():
                apply_log_config(concise_log_dict)

            # Set level of root logger based on levelname or levelnumber
            level = int(config) if config.isdigit() else getattr(logging, config.upper(), None)
            if not isinstance(level, int) or not (0 <= level <= 50):
                raise ValueError(f"Invalid logging level: {config}")

            logging.getLogger().setLevel(level)
    else:
        raise ValueError(
            f"Unsupported config type. Expect config to be a dict, filepath, level, or LogMode but got {type(config)}"
        )
