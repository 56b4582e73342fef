import logging
import os

import yaml

from gamecatalog.constants import CONFIG_FILE, DEFAULT_SETTINGS
from gamecatalog.utils import deep_merge

# Retrieve main logger
logger = logging.getLogger("main")


# Cache variable
_cached_settings = None


def load_settings(force=False, config_file=None):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    config_file = config_file or CONFIG_FILE
    settings = DEFAULT_SETTINGS
    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            settings = deep_merge(DEFAULT_SETTINGS, yaml.safe_load(yaml_file) or {})
    else:
        settings = deep_merge(DEFAULT_SETTINGS, {})

    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        settings["database"]["url"] = database_url

    _cached_settings = settings
    return settings


def verify_settings(section, data):
    success = True
    errors = []
    if section == "query":
        default_take = data.get("default_take", 0)
        max_take = data.get("max_take", 0)
        if not isinstance(default_take, int) or default_take <= 0:
            success = False
            errors.append({"path": "query/default_take", "error": "default_take must be a positive integer."})
        if not isinstance(max_take, int) or max_take < default_take:
            success = False
            errors.append({"path": "query/max_take", "error": "max_take must be an integer >= default_take."})
        if not isinstance(data.get("max_rounds", 0), int) or data.get("max_rounds", 0) <= 0:
            success = False
            errors.append({"path": "query/max_rounds", "error": "max_rounds must be a positive integer."})
    elif section == "logging":
        if data.get("format") not in ("console", "json"):
            success = False
            errors.append({"path": "logging/format", "error": f"Unknown log format {data.get('format')}."})
    return success, errors
