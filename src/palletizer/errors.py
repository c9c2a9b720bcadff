"""Error types raised by the packing engine and the HTTP client."""

from __future__ import annotations

from typing import Optional


class PalletizerError(Exception):
    """Base class for all palletizer errors."""


class ValidationError(PalletizerError):
    """A carton specification is malformed or impossible to pack."""

    def __init__(self, message: str, carton_id: Optional[str] = None):
        super().__init__(message)
        self.carton_id = carton_id


class CapacityExhausted(ValidationError):
    """A carton cannot fit on any pallet, even on an empty one."""


class InternalLimitExceeded(PalletizerError):
    """A pass or anchor safety limit tripped while placing one carton instance."""

    def __init__(self, message: str, instance_id: Optional[str] = None):
        super().__init__(message)
        self.instance_id = instance_id


class PackingCancelled(PalletizerError):
    """The caller cancelled an in-flight packing run."""


class PalletizerClientError(PalletizerError):
    """Request to a palletizer service failed before a usable response arrived."""


class PalletizerAPIError(PalletizerClientError):
    """The palletizer service answered with a non-200 status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"API error (status {status_code}): {message}")
        self.status_code = status_code
        self.message = message
