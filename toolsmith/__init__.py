"""toolsmith - declarative, idempotent tool provisioning."""

__version__ = "0.3.0"
