"""
Capability Mounter

Binds flag-gated routers into the FastAPI app.

An enabled capability has its router included under its prefix; a disabled
one gets no routes at all, so requests into its path space fall through to
the app's 404 handler. Each capability is evaluated on its own and owns a
disjoint prefix, which makes the final route set independent of mount order.
Overlapping prefixes are rejected at mount time, whether or not the flags
involved are enabled.

Routes added by a pass are recorded so remount() can remove them, re-read
the flags, and bind again. Passes are serialized.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi import APIRouter, FastAPI

from .capability_registry import CapabilityBinding
from .errors import CapabilityConfigError, DuplicatePrefixError
from .feature_flags import FeatureFlagResolver

logger = logging.getLogger(__name__)


def normalize_prefix(prefix: str) -> str:
    """
    Normalize a mount prefix to '/a/b' form

    Raises:
        CapabilityConfigError: If the prefix is empty or the root path
    """
    cleaned = "/" + (prefix or "").strip().strip("/")
    if cleaned == "/":
        raise CapabilityConfigError(f"Capability prefix must not be empty or '/': {prefix!r}")
    return cleaned


def prefixes_overlap(a: str, b: str) -> bool:
    """True if the prefixes are equal or one is nested inside the other"""
    return a == b or a.startswith(b + "/") or b.startswith(a + "/")


@dataclass
class MountedCapability:
    flag_name: str
    prefix: str
    routes: List[Any] = field(default_factory=list)


class CapabilityMounter:
    """Mounts flag-gated routers and tracks what it mounted"""

    def __init__(
        self,
        app: FastAPI,
        resolver: FeatureFlagResolver,
        reserved_prefixes: Iterable[str] = (),
    ):
        self.app = app
        self.resolver = resolver
        self.reserved_prefixes = tuple(normalize_prefix(p) for p in reserved_prefixes)
        self._lock = threading.Lock()
        self._claimed: Dict[str, str] = {}
        self._mounted: Dict[str, MountedCapability] = {}

    @property
    def mounted(self) -> Dict[str, str]:
        """Flag name -> prefix for every capability currently bound"""
        return {name: record.prefix for name, record in self._mounted.items()}

    def is_mounted(self, flag_name: str) -> bool:
        return flag_name in self._mounted

    def mount(
        self,
        flag_name: str,
        router: APIRouter,
        prefix: str,
        tags: Optional[Sequence[str]] = None,
    ) -> bool:
        """
        Mount one capability if its flag is enabled

        Args:
            flag_name: Flag gating the capability
            router: Handler group to bind
            prefix: Path prefix the capability owns
            tags: OpenAPI tags; defaults to [flag_name]

        Returns:
            True if routes were bound, False if the flag is disabled

        Raises:
            DuplicatePrefixError: If the prefix overlaps one already claimed
            CapabilityConfigError: If the prefix is invalid or the flag is already claimed
        """
        binding = CapabilityBinding(flag_name=flag_name, prefix=prefix, router=router, tags=tuple(tags or ()))
        with self._lock:
            return self._mount_one(binding)

    def mount_all(self, bindings: Iterable[CapabilityBinding]) -> Dict[str, bool]:
        """
        Mount a set of capabilities

        The whole set is validated before anything is bound, so a conflict
        leaves the app untouched.

        Returns:
            Flag name -> whether it was mounted
        """
        bindings = list(bindings)
        with self._lock:
            return self._mount_all(bindings)

    def remount(self, bindings: Iterable[CapabilityBinding]) -> Dict[str, bool]:
        """
        Remove every capability route from the previous pass and mount again

        Used after a flag reload so routing follows the new flag values. The
        new binding set is validated first; a conflict leaves the current
        routes and claims in place.
        """
        bindings = list(bindings)
        with self._lock:
            self._validate(bindings, {})
            removed = self._remove_all()
            results = self._mount_all(bindings)
        logger.info(
            f"Capabilities remounted: removed_routes={removed}, "
            f"mounted={sorted(name for name, ok in results.items() if ok)}"
        )
        return results

    def _validate(self, bindings: List[CapabilityBinding], claims: Dict[str, str]) -> None:
        claims = dict(claims)
        for binding in bindings:
            prefix = normalize_prefix(binding.prefix)
            self._check_claim(binding.flag_name, prefix, claims)
            claims[prefix] = binding.flag_name

    def _mount_all(self, bindings: List[CapabilityBinding]) -> Dict[str, bool]:
        self._validate(bindings, self._claimed)
        return {binding.flag_name: self._mount_one(binding) for binding in bindings}

    def _mount_one(self, binding: CapabilityBinding) -> bool:
        flag_name = binding.flag_name
        prefix = normalize_prefix(binding.prefix)
        self._check_claim(flag_name, prefix, self._claimed)
        self._claimed[prefix] = flag_name

        if not self.resolver.is_enabled(flag_name):
            logger.info(f"⏭️  Feature skipped: {flag_name} (disabled), nothing bound at {prefix}")
            return False

        existing = {id(route) for route in self.app.router.routes}
        self.app.include_router(binding.router, prefix=prefix, tags=list(binding.tags) or [flag_name])
        added = [route for route in self.app.router.routes if id(route) not in existing]

        self._mounted[flag_name] = MountedCapability(flag_name=flag_name, prefix=prefix, routes=added)
        self.app.openapi_schema = None
        logger.info(f"✅ Feature loaded: {flag_name} at {prefix} ({len(added)} routes)")
        return True

    def _check_claim(self, flag_name: str, prefix: str, claims: Dict[str, str]) -> None:
        if flag_name in claims.values():
            raise CapabilityConfigError(f"Capability '{flag_name}' is already mounted in this pass")

        for claimed_prefix, owner in claims.items():
            if prefixes_overlap(prefix, claimed_prefix):
                logger.error(f"Route conflict: '{flag_name}' at {prefix} overlaps '{owner}' at {claimed_prefix}")
                raise DuplicatePrefixError(prefix, owner, flag_name)

        for path in self._static_paths():
            if prefixes_overlap(prefix, path):
                logger.error(f"Route conflict: '{flag_name}' at {prefix} overlaps always-on route {path}")
                raise DuplicatePrefixError(prefix, f"route {path}", flag_name)

    def _static_paths(self) -> List[str]:
        """Always-on prefixes plus every non-capability route path on the app"""
        capability_routes = {id(route) for record in self._mounted.values() for route in record.routes}
        paths = list(self.reserved_prefixes)
        for route in self.app.router.routes:
            if id(route) in capability_routes:
                continue
            # included routers may be recorded as one entry carrying a prefix
            path = getattr(route, "path", None) or getattr(route, "prefix", None)
            if path:
                paths.append(path)
        return paths

    def _remove_all(self) -> int:
        doomed = {id(route) for record in self._mounted.values() for route in record.routes}
        current = list(self.app.router.routes)
        remaining = [route for route in current if id(route) not in doomed]
        self.app.router.routes = remaining
        self.app.openapi_schema = None
        self._mounted.clear()
        self._claimed.clear()
        return len(current) - len(remaining)
