"""Typed client for the Polygon.io market-data REST API and flat files."""

from polymux.client import Client
from polymux.config import Config, load_config
from polymux.exceptions import (
    ApiError,
    AuthenticationError,
    ErrorCode,
    FlatFileNotFoundError,
    FlatFilesError,
    IntegrityError,
    InvalidCredentialsError,
    NetworkError,
    NoPreviousDataFoundError,
    PolymuxError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "AuthenticationError",
    "Client",
    "Config",
    "ErrorCode",
    "FlatFileNotFoundError",
    "FlatFilesError",
    "IntegrityError",
    "InvalidCredentialsError",
    "NetworkError",
    "NoPreviousDataFoundError",
    "PolymuxError",
    "ValidationError",
    "__version__",
    "load_config",
]
