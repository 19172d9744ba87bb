"""
Feature Flag Models
Environment tags, flag records, and the per-environment manifest
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Set
from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_serializer, field_validator


class Environment(str, Enum):
    """Deployment environment that selects which manifest is loaded"""
    STAGE = "stage"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: str) -> "Environment":
        """
        Parse an environment tag from configuration

        Accepts the enum values and the short alias "prod", case-insensitive.

        Raises:
            ValueError: If the value names no known environment
        """
        normalized = (value or "").strip().lower()
        if normalized in _ALIASES:
            return _ALIASES[normalized]
        try:
            return cls(normalized)
        except ValueError:
            known = ", ".join(sorted({e.value for e in cls} | set(_ALIASES)))
            raise ValueError(f"Unknown environment '{value}' (expected one of: {known})")


_ALIASES = {"prod": Environment.PRODUCTION}


class FlagRecord(BaseModel):
    """
    One named feature switch

    Only `enabled` gates behavior. The remaining fields, and any extra keys
    found in the manifest, are informational.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    enabled: StrictBool = Field(..., description="Sole value consulted for gating")
    description: Optional[str] = Field(default=None, description="Free text")
    owner: Optional[str] = Field(default=None, description="Owning developer or team")
    status: Optional[str] = Field(default=None, description="Lifecycle tag, e.g. in_development, live")


class Manifest(BaseModel):
    """
    Full set of flag records for one environment

    Immutable: the features map is a read-only view, so a manifest handed
    out by the resolver cannot change the active flag set.
    """
    model_config = ConfigDict(frozen=True)

    environment: Optional[str] = None
    features: Mapping[str, FlagRecord] = Field(default_factory=dict, validate_default=True)

    @field_validator("features")
    @classmethod
    def _freeze_features(cls, features: Mapping[str, FlagRecord]) -> Mapping[str, FlagRecord]:
        for name in features:
            if not name.strip():
                raise ValueError("Flag names must be non-empty")
        return MappingProxyType(dict(features))

    @field_serializer("features")
    def _serialize_features(self, features: Mapping[str, FlagRecord]) -> Dict[str, Any]:
        return {name: record.model_dump(exclude_none=True) for name, record in features.items()}

    @classmethod
    def empty(cls, environment: Optional[str] = None) -> "Manifest":
        return cls(environment=environment, features={})

    @classmethod
    def all_disabled(cls, names, environment: Optional[str] = None) -> "Manifest":
        """Manifest listing every given flag as explicitly disabled"""
        return cls(
            environment=environment,
            features={name: FlagRecord(enabled=False) for name in names},
        )

    def enabled_names(self) -> Set[str]:
        return {name for name, record in self.features.items() if record.enabled is True}

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form, shaped like the manifest source"""
        return self.model_dump()
