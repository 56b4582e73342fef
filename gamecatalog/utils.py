import copy
import logging
import re

from gamecatalog.constants import AGGREGATE_SUFFIX, ID_SEPARATOR


# Custom logging formatter to support colors
class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[94m",  # Blue
        "INFO": "\033[92m",  # Green
        "WARNING": "\033[93m",  # Yellow
        "ERROR": "\033[91m",  # Red
        "CRITICAL": "\033[95m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        return super().format(record)


# Filter to remove date from http access logs
class FilterRemoveDateFromWerkzeugLogs(logging.Filter):
    # '192.168.0.102 - - [30/Jun/2024 01:14:03] "%s" %s %s' -> '192.168.0.102 - "%s" %s %s'
    pattern: re.Pattern = re.compile(r' - - \[.+?] "')

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.pattern.sub(' - "', record.msg)
        return True


def deep_merge(base, override):
    """Return a copy of *base* with *override* merged in, section by section."""
    merged = copy.deepcopy(base)
    for section, values in (override or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section] = deep_merge(merged[section], values)
        else:
            merged[section] = values
    return merged


def is_safe_id(game_id):
    """A catalog id has exactly two separator-delimited parts and starts with a letter."""
    if not game_id:
        return False
    return len(game_id.split(ID_SEPARATOR)) == 2 and game_id[0].isalpha()


def aggregate_id_for(game_id):
    if game_id.endswith(AGGREGATE_SUFFIX):
        return game_id
    return f"{game_id}{AGGREGATE_SUFFIX}"
