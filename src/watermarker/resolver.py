"""Effective watermark resolution: direct assignment, inheritance, then the default set."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .errors import InvalidArgument, InvalidAssignment, ResourceNotFound
from .logger import log
from .models import ResourceRef, ResourceType, ResourceWatermarkAssignment, WatermarkSet
from .resources import ResourceCatalog
from .store import WatermarkStore

# media -> item -> item set
MAX_DEPTH = 2

NO_WATERMARK = "none"
USE_DEFAULT = "default"

AssignmentTarget = Union[int, str]


class ResolutionSource(str, Enum):
    """Why a resolution came out the way it did"""
    DIRECT = "direct"
    INHERITED = "inherited"
    DEFAULT = "default"
    EXPLICIT_NONE = "explicit-none"
    NONE = "none"


@dataclass(frozen=True)
class Resolution:
    watermark_set: Optional[WatermarkSet]
    source: ResolutionSource
    decided_by: Optional[ResourceRef] = None


class AssignmentResolver:
    """Resolves and edits per-resource watermark assignments."""

    def __init__(self, store: WatermarkStore, catalog: ResourceCatalog):
        self.store = store
        self.catalog = catalog

    def resolve_effective_watermark_set(
        self, resource_type: Union[ResourceType, str], resource_id: int
    ) -> Optional[WatermarkSet]:
        return self.resolve(resource_type, resource_id).watermark_set

    def resolve(self, resource_type: Union[ResourceType, str], resource_id: int) -> Resolution:
        """
        Resolve the watermark set that applies to a resource.

        A direct assignment decides first: an explicit "no watermark" ends the
        lookup with no set, a set reference returns that set whether or not it
        is enabled. Without a decision the lookup moves one level up (media to
        its item, item to its item sets) and finally falls back to the enabled
        default set.

        Raises:
            InvalidArgument: If the resource type is not recognised.
            ResourceNotFound: If the resource does not exist.
        """
        ref = self._existing_ref(resource_type, resource_id)
        decision = self._lookup(ref, depth=0)
        if decision is not None:
            log.debug(f"Resolved {ref} via {decision.source.value} from {decision.decided_by}")
            return decision

        default_set = self.store.get_default_set()
        if default_set is None:
            return Resolution(None, ResolutionSource.NONE)
        return Resolution(default_set, ResolutionSource.DEFAULT)

    def _lookup(self, ref: ResourceRef, depth: int) -> Optional[Resolution]:
        """Return a decision for ref or its ancestors, or None to fall back to the default."""
        assignment = self.store.find_assignment(ref)
        if assignment is not None:
            if assignment.explicitly_no_watermark:
                return Resolution(None, ResolutionSource.EXPLICIT_NONE, ref)
            if assignment.watermark_set_id is not None:
                watermark_set = self.store.find_set(assignment.watermark_set_id)
                if watermark_set is not None:
                    source = ResolutionSource.DIRECT if depth == 0 else ResolutionSource.INHERITED
                    return Resolution(watermark_set, source, ref)
                log.warning(f"Assignment for {ref} points at missing set #{assignment.watermark_set_id}")

        if depth >= MAX_DEPTH:
            return None

        # Item sets come lowest id first; a set assignment on any of them beats
        # an explicit "none" on an earlier one.
        explicit_none: Optional[Resolution] = None
        for parent in self.catalog.get_parents(ref):
            decision = self._lookup(parent, depth + 1)
            if decision is None:
                continue
            if decision.watermark_set is not None:
                return Resolution(decision.watermark_set, ResolutionSource.INHERITED, decision.decided_by)
            if explicit_none is None:
                explicit_none = decision
        return explicit_none

    def get_assignment(
        self, resource_type: Union[ResourceType, str], resource_id: int
    ) -> Optional[ResourceWatermarkAssignment]:
        ref = self._existing_ref(resource_type, resource_id)
        return self.store.find_assignment(ref)

    def set_assignment(
        self,
        resource_type: Union[ResourceType, str],
        resource_id: int,
        target: AssignmentTarget,
    ) -> Optional[ResourceWatermarkAssignment]:
        """
        Assign a watermark set, "none" or "default" to a resource.

        "default" removes any assignment so the resource inherits again and
        returns None.

        Raises:
            InvalidArgument: For an unrecognised resource type or target.
            ResourceNotFound: If the resource does not exist.
            InvalidAssignment: If the set is missing or disabled.
        """
        ref = self._existing_ref(resource_type, resource_id)

        if isinstance(target, str) and target.strip().lower() == NO_WATERMARK:
            assignment = self.store.save_assignment(ref, None, explicitly_no_watermark=True)
            log.info(f"Assigned no watermark to {ref}")
            return assignment

        if isinstance(target, str) and target.strip().lower() == USE_DEFAULT:
            if self.store.delete_assignment(ref):
                log.info(f"Removed watermark assignment for {ref}; inheriting again")
            return None

        set_id = self._parse_set_id(target)
        watermark_set = self.store.find_set(set_id)
        if watermark_set is None:
            raise InvalidAssignment(f"Watermark set #{set_id} does not exist")
        if not watermark_set.enabled:
            raise InvalidAssignment(f"Watermark set #{set_id} is disabled")
        assignment = self.store.save_assignment(ref, set_id, explicitly_no_watermark=False)
        log.info(f"Assigned watermark set #{set_id} '{watermark_set.name}' to {ref}")
        return assignment

    def _existing_ref(self, resource_type: Union[ResourceType, str], resource_id: int) -> ResourceRef:
        ref = ResourceRef.of(resource_type, resource_id)
        if not self.catalog.exists(ref):
            raise ResourceNotFound(f"Resource {ref} not found")
        return ref

    @staticmethod
    def _parse_set_id(target: AssignmentTarget) -> int:
        if isinstance(target, bool):
            raise InvalidArgument(f"Invalid assignment target: {target!r}")
        if isinstance(target, int):
            return target
        if isinstance(target, str) and target.strip().isdigit():
            return int(target.strip())
        raise InvalidArgument(f"Invalid assignment target: {target!r}")


__all__ = [
    "AssignmentResolver",
    "MAX_DEPTH",
    "NO_WATERMARK",
    "Resolution",
    "ResolutionSource",
    "USE_DEFAULT",
]
