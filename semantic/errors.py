"""
Audit Errors Module
Exceptions raised when an audit cannot run at all.
"""


class AuditError(Exception):
    """Base class for audit failures."""


class SnapshotError(AuditError):
    """A top-level snapshot is missing or structurally invalid."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source} snapshot: {message}")


class ImageInputError(AuditError):
    """A raster input cannot be compared."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source} image: {message}")


class ConfigError(AuditError, ValueError):
    pass
