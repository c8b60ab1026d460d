"""Core types: results, configuration, exit codes and errors."""

from .config import ConfigError, EnvironmentConfig, load_config
from .errors import ErrorCode, RecipeError, RegistryError, ToolsmithError
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "ConfigError",
    "EnvironmentConfig",
    "load_config",
    # errors
    "ErrorCode",
    "RecipeError",
    "RegistryError",
    "ToolsmithError",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
