# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Error taxonomy for the Genesis engine and its collaborators."""


class GenesisError(Exception):
    """Base class for all evidenra errors."""


class ServiceError(GenesisError):
    """A text generation call failed (network, timeout, quota, empty reply)."""

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.provider = provider


class MalformedOutputError(GenesisError):
    """Generated text could not be parsed into the expected structure."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ConfigurationError(GenesisError, ValueError):
    """An evolution run was configured with invalid values."""
