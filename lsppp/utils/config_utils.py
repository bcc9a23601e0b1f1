"""configuration management utilities

settings live in an ini file (./config.ini by default):

    [lsppp]
    autoformat = true
    autostart = true
    autocomplete = true
    filetypes = c,cpp,c++

    [server]
    command = clangd
    args = --background-index --header-insertion=never

    [ui]
    max_visible_items = 10
    safety_margin = 1

    [format]
    tab_size = 4
    insert_spaces = true

    [client]
    request_timeout = 30

    [logging]
    level = info
    log_dir =
"""

import os
import shlex
import configparser
from typing import List

global_config = configparser.ConfigParser()

DEFAULTS = {
    "lsppp": {
        "autoformat": "true",
        "autostart": "true",
        "autocomplete": "true",
        "filetypes": "c,cpp,c++",
    },
    "server": {
        "command": "clangd",
        "args": "--background-index --header-insertion=never",
    },
    "ui": {
        "max_visible_items": "10",
        "safety_margin": "1",
    },
    "format": {
        "tab_size": "4",
        "insert_spaces": "true",
    },
    "client": {
        "request_timeout": "30",
    },
    "logging": {
        "level": "info",
        "log_dir": "",
    },
}


def load_config_ini(config_path: str = "./config.ini") -> None:
    """load configuration file

    Args:
        config_path: path to config.ini file
    """
    if os.path.exists(config_path):
        global_config.read(config_path, encoding="utf-8")


def get_config_value(section: str, key: str, default=None):
    """get configuration value

    values missing from config.ini fall back to the built-in DEFAULTS
    before the caller's default is used.

    Args:
        section: config section name
        key: config key name
        default: default value if not found

    Returns:
        config value or default
    """
    try:
        return global_config.get(section, key)
    except (configparser.NoSectionError, configparser.NoOptionError):
        pass
    builtin = DEFAULTS.get(section, {}).get(key)
    if builtin is not None and default is None:
        return builtin
    return default


def get_config_int(section: str, key: str, default: int = 0) -> int:
    """get configuration value as integer"""
    value = get_config_value(section, key)
    if value is None or value == "":
        return default
    return int(value)


def get_config_float(section: str, key: str, default: float = 0.0) -> float:
    """get configuration value as float"""
    value = get_config_value(section, key)
    if value is None or value == "":
        return default
    return float(value)


def get_config_bool(section: str, key: str, default: bool = False) -> bool:
    """get configuration value as boolean"""
    value = get_config_value(section, key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def get_config_list(section: str, key: str, sep: str = ",") -> List[str]:
    """get configuration value as a list of stripped, non-empty items"""
    value = get_config_value(section, key)
    if not value:
        return []
    return [item.strip() for item in value.split(sep) if item.strip()]


def get_server_command() -> List[str]:
    """language server argv built from [server] command + args"""
    command = get_config_value("server", "command")
    args = get_config_value("server", "args") or ""
    return [command] + shlex.split(args)


# auto-load on import
load_config_ini()
