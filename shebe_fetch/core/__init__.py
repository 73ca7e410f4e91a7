"""Core types: results, exit codes, configuration, cache cells."""

from .config import Config, ConfigError, load_config
from .errors import ErrorCode
from .once import OnceCell
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    # errors
    "ErrorCode",
    # once
    "OnceCell",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
