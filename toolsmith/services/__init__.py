"""Services built on top of the platform layer."""

from .transient import (
    ServiceHandle,
    TransientServiceError,
    file_exists,
    port_open,
    run_with_service,
    transient_service,
)

__all__ = [
    "ServiceHandle",
    "TransientServiceError",
    "file_exists",
    "port_open",
    "run_with_service",
    "transient_service",
]
