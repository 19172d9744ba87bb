"""
Client-side Feature Flag Mirror

Read-only view of the published flag map for the presentation tier. The map
is the already-resolved JSON for one environment, produced from the YAML
manifest at deploy time and served as a static file.

There is no reload channel: the snapshot is fetched once and a fresh page
load is the only refresh. A failed fetch falls back to a manifest with every
known feature disabled, and queries never raise.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Set

import httpx
from pydantic import ValidationError

from trunk_api.app.models.feature_flags import Environment, FlagRecord, Manifest

logger = logging.getLogger(__name__)

FEATURE_FLAGS_PATH = "config/features.json"
KNOWN_FEATURES = ("advanced_search", "export_csv")
FEATURE_ATTRIBUTE = "data-feature"
ENABLED_CLASS = "feature-enabled"
DISABLED_CLASS = "feature-disabled"


def resolve_environment(configured: Optional[str] = None, path: Optional[str] = None) -> Environment:
    """
    Decide which environment the client is running in

    The configured value (injected at build or deploy time) wins. Sniffing
    the page path for '/stage/' or '/production/' is a deprecated fallback.
    """
    if configured:
        return Environment.parse(configured)
    if path:
        for environment in (Environment.STAGE, Environment.PRODUCTION):
            if f"/{environment.value}/" in path:
                logger.warning(
                    f"Environment inferred from page path '{path}'; "
                    "path sniffing is deprecated, configure the environment explicitly"
                )
                return environment
    return Environment.PRODUCTION


@dataclass
class TaggedElement:
    """A UI element; tagged when its attributes carry data-feature"""
    attributes: Dict[str, str] = field(default_factory=dict)
    classes: Set[str] = field(default_factory=set)
    hidden: bool = False

    @property
    def feature(self) -> Optional[str]:
        return self.attributes.get(FEATURE_ATTRIBUTE)


class FlagMirror:
    """Fetches the published flag map once and answers queries over it"""

    def __init__(
        self,
        url: str = FEATURE_FLAGS_PATH,
        base_url: str = "",
        environment: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        known_features: Sequence[str] = KNOWN_FEATURES,
    ):
        self.url = url
        self.base_url = base_url
        self.transport = transport
        self.known_features = tuple(known_features)
        self._configured_environment = environment
        self._manifest = Manifest.empty(environment)
        self.loaded = False

    def _fallback(self) -> Manifest:
        environment = self._configured_environment or Environment.PRODUCTION.value
        return Manifest.all_disabled(self.known_features, environment=environment)

    async def load(self) -> Manifest:
        """
        Fetch the published flag map

        Returns:
            The fetched manifest, or an all-disabled fallback on any failure
        """
        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
            manifest = Manifest(
                environment=payload.get("environment") or self._configured_environment,
                features=payload.get("features") or {},
            )
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, ValidationError) as e:
            logger.error(f"Error loading feature flags from {self.url}: {e}. Using defaults.")
            self._manifest = self._fallback()
            self.loaded = False
            return self._manifest

        self._manifest = manifest
        self.loaded = True
        logger.info(f"✓ Feature flags loaded for: {self.environment}")
        logger.info(f"✓ Active features: {sorted(manifest.enabled_names())}")
        return manifest

    @property
    def environment(self) -> str:
        return self._manifest.environment or self._configured_environment or Environment.PRODUCTION.value

    def is_enabled(self, name: str) -> bool:
        record = self._manifest.features.get(name)
        if record is None:
            logger.warning(f"Feature \"{name}\" not found in config")
            return False
        return record.enabled is True

    def describe(self, name: str) -> Optional[FlagRecord]:
        return self._manifest.features.get(name)

    def enabled_names(self) -> Set[str]:
        return self._manifest.enabled_names()

    def all(self) -> Manifest:
        return self._manifest

    def when_enabled(self, name: str, callback: Callable[[], Any]) -> Any:
        if self.is_enabled(name):
            return callback()
        return None

    def apply(self, elements: Iterable[TaggedElement]) -> int:
        """
        Show or hide every tagged element to match its flag

        Safe to re-run. Untagged elements are left alone.

        Returns:
            Number of tagged elements swept
        """
        swept = 0
        for element in elements:
            feature = element.feature
            if feature is None:
                continue
            enabled = self.is_enabled(feature)
            element.hidden = not enabled
            element.classes.discard(DISABLED_CLASS if enabled else ENABLED_CLASS)
            element.classes.add(ENABLED_CLASS if enabled else DISABLED_CLASS)
            swept += 1
        logger.info(f"✓ Applied feature flags to {swept} elements")
        return swept
