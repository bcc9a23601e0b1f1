"""utility modules for lsppp"""

from lsppp.utils.singleton_utils import SingletonInstance
from lsppp.utils.logging_utils import Logger, logging_func
from lsppp.utils.config_utils import (
    load_config_ini,
    get_config_value,
    get_config_int,
    get_config_float,
    get_config_bool,
    get_config_list,
    get_server_command,
)

__all__ = [
    "SingletonInstance",
    "Logger",
    "logging_func",
    "load_config_ini",
    "get_config_value",
    "get_config_int",
    "get_config_float",
    "get_config_bool",
    "get_config_list",
    "get_server_command",
]
