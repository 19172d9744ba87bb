"""
Feature Flag Service

Loads the YAML flag manifest for the selected environment and answers
enablement queries over it.

- The initial load fails safe: any problem with the source yields an empty
  manifest, so every capability resolves to disabled.
- reload() only replaces the active manifest after a successful parse; a
  broken source keeps the previous configuration.
- The active manifest is held behind a single attribute and replaced in one
  assignment, so readers never see a partially updated flag set.

reload() changes observable flag state immediately. It does not touch routes
that are already mounted; see CapabilityMounter.remount() for that.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Set

import yaml
from pydantic import ValidationError

from .errors import ManifestLoadError
from ..models.feature_flags import Environment, FlagRecord, Manifest

logger = logging.getLogger(__name__)

MANIFEST_FILES: Dict[Environment, str] = {
    Environment.STAGE: "features.stage.yml",
    Environment.PRODUCTION: "features.prod.yml",
}


class ManifestLoader:
    """Reads per-environment flag manifests from a config directory"""

    def __init__(self, config_dir: Path):
        self.config_dir = Path(config_dir)

    def path_for(self, environment: Environment) -> Path:
        return self.config_dir / MANIFEST_FILES[environment]

    def try_load(self, environment: Environment) -> Manifest:
        """
        Load and validate the manifest for an environment

        Args:
            environment: Environment whose manifest should be read

        Returns:
            Parsed Manifest

        Raises:
            ManifestLoadError: If the file is missing, unparsable, or malformed
        """
        path = self.path_for(environment)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ManifestLoadError(f"Manifest not found: {path}", path=str(path)) from e
        except (OSError, yaml.YAMLError) as e:
            raise ManifestLoadError(f"Failed to read manifest {path}: {e}", path=str(path)) from e

        if not isinstance(raw, dict):
            raise ManifestLoadError(
                f"Manifest {path} must be a mapping, got {type(raw).__name__}", path=str(path)
            )

        declared = raw.get("environment")
        if declared is not None and not _same_environment(declared, environment):
            logger.warning(
                f"Manifest {path} declares environment '{declared}' but was loaded for '{environment.value}'"
            )

        features = raw.get("features")
        if features is None:
            logger.warning(f"Manifest {path} has no 'features' section")
            features = {}
        if not isinstance(features, dict):
            raise ManifestLoadError(
                f"'features' in {path} must be a mapping, got {type(features).__name__}", path=str(path)
            )

        try:
            return Manifest(environment=environment.value, features=features)
        except ValidationError as e:
            raise ManifestLoadError(f"Malformed flag records in {path}: {e}", path=str(path)) from e

    def load(self, environment: Environment) -> Manifest:
        """
        Load the manifest for an environment, falling back to an empty one

        Never raises. Failures are logged and produce a manifest with no
        features, which resolves every flag to disabled.
        """
        try:
            manifest = self.try_load(environment)
        except ManifestLoadError as e:
            logger.error(f"Error loading feature flags for '{environment.value}': {e}. Using empty flag set.")
            return Manifest.empty(environment.value)

        logger.info(f"✅ Feature flags loaded for: {environment.value}")
        logger.info(f"✅ Config file: {self.path_for(environment)}")
        logger.info(f"✅ Features: {sorted(manifest.features)}")
        return manifest


def _same_environment(declared: Any, environment: Environment) -> bool:
    try:
        return Environment.parse(str(declared)) is environment
    except ValueError:
        return False


@dataclass(frozen=True)
class ResolverState:
    """Active manifest plus the environment it was loaded for"""
    environment: Environment
    manifest: Manifest
    loaded_at: datetime


@dataclass(frozen=True)
class ReloadResult:
    ok: bool
    manifest: Manifest
    error: Optional[str] = None


class FeatureFlagResolver:
    """
    Answers enablement queries over the active manifest

    Constructed once by the application factory and handed to whatever needs
    it (mounter, routes). Each query reads the state attribute once.
    """

    def __init__(self, environment: Environment, loader: ManifestLoader):
        self._environment = environment
        self._loader = loader
        self._reload_lock = threading.Lock()
        self._state = ResolverState(
            environment=environment,
            manifest=loader.load(environment),
            loaded_at=datetime.now(timezone.utc),
        )

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def state(self) -> ResolverState:
        return self._state

    def is_enabled(self, name: str) -> bool:
        """
        Check if a feature is enabled

        Unknown names are reported with a warning and treated as disabled.
        """
        record = self._state.manifest.features.get(name)
        if record is None:
            logger.warning(f"⚠️  Feature \"{name}\" not found in config")
            return False
        enabled = record.enabled is True
        logger.debug(f"Feature \"{name}\" is {'ENABLED' if enabled else 'DISABLED'}")
        return enabled

    def describe(self, name: str) -> Optional[FlagRecord]:
        return self._state.manifest.features.get(name)

    def enabled_names(self) -> Set[str]:
        return self._state.manifest.enabled_names()

    def all(self) -> Manifest:
        return self._state.manifest

    def when_enabled(self, name: str, callback: Callable[[], Any]) -> Any:
        """Run callback only if the feature is enabled; returns its result or None"""
        if self.is_enabled(name):
            return callback()
        return None

    def reload(self) -> ReloadResult:
        """
        Re-read the manifest for the current environment

        The active state is replaced only when the new manifest parses
        cleanly. Concurrent reloads are serialized.
        """
        with self._reload_lock:
            logger.info("🔄 Reloading feature flags...")
            previous = self._state
            try:
                manifest = self._loader.try_load(self._environment)
            except ManifestLoadError as e:
                logger.error(f"Feature flag reload failed, keeping previous configuration: {e}")
                return ReloadResult(ok=False, manifest=previous.manifest, error=str(e))

            self._state = ResolverState(
                environment=self._environment,
                manifest=manifest,
                loaded_at=datetime.now(timezone.utc),
            )

            before = previous.manifest.enabled_names()
            after = manifest.enabled_names()
            if before != after:
                logger.info(
                    f"Feature flags reloaded: enabled={sorted(after - before)}, "
                    f"disabled={sorted(before - after)}"
                )
            else:
                logger.info("Feature flags reloaded: no enablement changes")
            return ReloadResult(ok=True, manifest=manifest)
