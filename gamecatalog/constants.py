import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_DIR = os.environ.get("GAMECATALOG_CONFIG_DIR", os.path.join(os.path.dirname(APP_DIR), "config"))
CONFIG_FILE = os.environ.get("GAMECATALOG_CONFIG", os.path.join(CONFIG_DIR, "settings.yaml"))
DB_FILE = os.path.join(CONFIG_DIR, "gamecatalog.db")

GAMECATALOG_DB = "sqlite:///" + DB_FILE

DEFAULT_SETTINGS = {
    "database": {
        "url": GAMECATALOG_DB,
    },
    "query": {
        "default_take": 100,
        "max_take": 500,
        "max_rounds": 50,
        "strict_hierarchy": False,
    },
    "logging": {
        "format": "console",
        "level": "INFO",
    },
}

# Storage-level sentinels
CONSOLES = ["PS1", "PS2", "PSP"]
REGIONS = ["PAL", "NTSC", "NTSCJ"]
SENTINEL_NA = "NA"
AGGREGATE_SUFFIX = "_agg"
ID_SEPARATOR = "-"

# Region aliases accepted by the JSON importer
REGION_ALIASES = {
    "ntsc": "NTSC",
    "pal": "PAL",
    "ntscj": "NTSCJ",
    "ntscu": "NTSC",
}

EXPORT_FILENAME = "gameExport.json"
