from pathlib import Path

import yaml

from gedcom_transport.utils.pathing import config_path

CONFIG_PATH = config_path()

DEFAULTS = {
    "reader": {"read_notification_rate": 500},
    "writer": {
        "construction_notification_rate": 500,
        "file_notification_rate": 500,
        "line_terminator": "CRLF",
        "max_line_width": 255,
        "write_bom": False,
    },
    "logging": {"level": "INFO", "dir": "logs", "file": "gedcom_transport.log"},
    "debug": False,
}


class GTConfig:
    def __init__(self, data):
        self.paths = data.get("paths", {})
        self.reader = {**DEFAULTS["reader"], **(data.get("reader") or {})}
        self.writer = {**DEFAULTS["writer"], **(data.get("writer") or {})}
        self.logging = {**DEFAULTS["logging"], **(data.get("logging") or {})}
        self.debug = data.get("debug", DEFAULTS["debug"])


def load_config(path: Path = CONFIG_PATH) -> 'GTConfig':
    # An installed package has no config/ next to it; run on defaults then.
    if not path.exists():
        return GTConfig({})

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return GTConfig(data)

_config_cache = None

def get_config() -> 'GTConfig':
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache
