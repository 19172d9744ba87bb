"""
Feature Flag Errors
Exception types raised by the flag loader and the capability mounter
"""

from typing import Optional


class FeatureFlagError(Exception):
    """Base class for feature flag and capability errors"""


class ManifestLoadError(FeatureFlagError):
    """A flag manifest could not be read, parsed, or validated"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class CapabilityConfigError(FeatureFlagError):
    """Capability bindings are misconfigured"""


class DuplicatePrefixError(CapabilityConfigError):
    """Two capabilities claim the same (or a nested) path prefix"""

    def __init__(self, prefix: str, first: str, second: str):
        super().__init__(
            f"Path prefix conflict: '{second}' wants '{prefix}', "
            f"which overlaps the prefix already claimed by '{first}'"
        )
        self.prefix = prefix
        self.first = first
        self.second = second


class UnknownCapabilityError(CapabilityConfigError):
    """A capability name has no entry in the static registry"""

    def __init__(self, name: str):
        super().__init__(f"Unknown capability: '{name}'")
        self.name = name
