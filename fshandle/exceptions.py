"""
fshandle exceptions.

Navigation misses are not errors (they return ``False``); everything here
describes a genuine fault.
"""
from typing import Optional, Any, Dict


class FsHandleError(Exception):
    """Base exception for all fshandle errors."""

    def __init__(self, detail: str = "An error occurred", context: Optional[Dict[str, Any]] = None):
        self.detail = detail
        self.context = context or {}
        super().__init__(detail)


class InvalidPathError(FsHandleError):
    """Raised when a handle is constructed on something that is not a usable directory."""

    def __init__(self, detail: str = "Invalid path", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class ListingError(FsHandleError):
    """Raised when a directory cannot be enumerated (removed, permission denied, ...)."""

    def __init__(self, detail: str = "Listing failed", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class WatchRegistrationError(FsHandleError):
    """Raised when the platform refuses to watch a directory."""

    def __init__(self, detail: str = "Watch registration failed", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class HandleClosedError(FsHandleError):
    """Raised when an operation is attempted on a closed handle."""

    def __init__(self, detail: str = "Handle is closed", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class ConfigError(FsHandleError):
    """Raised when the configuration file is unreadable or has invalid values."""

    def __init__(self, detail: str = "Configuration error", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)
