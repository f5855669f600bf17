"""
Exception types raised by eksblueprint.
"""


class BlueprintError(Exception):
    """Base class for all eksblueprint errors."""


class ConfigurationError(BlueprintError, ValueError):
    """Raised when settings are missing or violate an invariant."""


class OutputDiscoveryError(BlueprintError):
    """Raised when CloudFormation stack outputs cannot be read."""


class ScanReportError(BlueprintError):
    """Raised when a vulnerability scan report cannot be parsed."""
