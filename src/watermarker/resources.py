"""Resource lookup: items, item sets and media with their parent edges"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from .errors import InvalidArgument, ResourceNotFound
from .models import ResourceRef, ResourceType


@dataclass
class MediaRecord:
    """A media resource and the file facts the applicator needs"""
    id: int
    item_id: int
    media_type: str
    storage_id: str
    extension: Optional[str] = None
    has_original: bool = True
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class ItemRecord:
    """An item and the item sets it belongs to"""
    id: int
    item_set_ids: List[int] = field(default_factory=list)
    media_ids: List[int] = field(default_factory=list)


class ResourceCatalog(Protocol):
    """Lookup interface the resolver and batch processor depend on"""

    def exists(self, ref: ResourceRef) -> bool: ...

    def get_parents(self, ref: ResourceRef) -> List[ResourceRef]: ...

    def get_media(self, media_id: int) -> MediaRecord: ...

    def media_for_item(self, item_id: int) -> List[MediaRecord]: ...

    def items_in_set(self, item_set_id: int) -> List[int]: ...

    def all_media_ids(self) -> List[int]: ...


class InMemoryResourceCatalog:
    """Resource catalog held in process memory"""

    def __init__(self):
        self._item_sets: set[int] = set()
        self._items: Dict[int, ItemRecord] = {}
        self._media: Dict[int, MediaRecord] = {}

    def add_item_set(self, item_set_id: int) -> ResourceRef:
        self._item_sets.add(item_set_id)
        return ResourceRef(ResourceType.ITEM_SET, item_set_id)

    def add_item(self, item_id: int, item_set_ids: Optional[List[int]] = None) -> ItemRecord:
        item_set_ids = list(item_set_ids or [])
        missing = [set_id for set_id in item_set_ids if set_id not in self._item_sets]
        if missing:
            raise ResourceNotFound(f"Item sets not found: {missing}")
        record = ItemRecord(id=item_id, item_set_ids=item_set_ids)
        existing = self._items.get(item_id)
        if existing is not None:
            record.media_ids = existing.media_ids
        self._items[item_id] = record
        return record

    def add_media(
        self,
        media_id: int,
        item_id: int,
        media_type: str = "image/jpeg",
        storage_id: Optional[str] = None,
        extension: Optional[str] = "jpg",
        has_original: bool = True,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> MediaRecord:
        item = self._items.get(item_id)
        if item is None:
            raise ResourceNotFound(f"Item #{item_id} not found")
        record = MediaRecord(
            id=media_id,
            item_id=item_id,
            media_type=media_type,
            storage_id=storage_id or f"media-{media_id}",
            extension=extension,
            has_original=has_original,
            width=width,
            height=height,
        )
        self._media[media_id] = record
        if media_id not in item.media_ids:
            item.media_ids.append(media_id)
        return record

    def exists(self, ref: ResourceRef) -> bool:
        if ref.resource_type == ResourceType.ITEM_SET:
            return ref.resource_id in self._item_sets
        if ref.resource_type == ResourceType.ITEM:
            return ref.resource_id in self._items
        if ref.resource_type == ResourceType.MEDIA:
            return ref.resource_id in self._media
        raise InvalidArgument(f"Invalid resource type: {ref.resource_type!r}")

    def get_parents(self, ref: ResourceRef) -> List[ResourceRef]:
        """Parents one hop up; item sets are returned lowest id first."""
        if not self.exists(ref):
            raise ResourceNotFound(f"Resource {ref} not found")
        if ref.resource_type == ResourceType.MEDIA:
            return [ResourceRef(ResourceType.ITEM, self._media[ref.resource_id].item_id)]
        if ref.resource_type == ResourceType.ITEM:
            return [
                ResourceRef(ResourceType.ITEM_SET, set_id)
                for set_id in sorted(self._items[ref.resource_id].item_set_ids)
            ]
        return []

    def get_media(self, media_id: int) -> MediaRecord:
        media = self._media.get(media_id)
        if media is None:
            raise ResourceNotFound(f"Media #{media_id} not found")
        return media

    def media_for_item(self, item_id: int) -> List[MediaRecord]:
        item = self._items.get(item_id)
        if item is None:
            raise ResourceNotFound(f"Item #{item_id} not found")
        return [self._media[media_id] for media_id in item.media_ids]

    def items_in_set(self, item_set_id: int) -> List[int]:
        if item_set_id not in self._item_sets:
            raise ResourceNotFound(f"Item set #{item_set_id} not found")
        return sorted(item.id for item in self._items.values() if item_set_id in item.item_set_ids)

    def all_media_ids(self) -> List[int]:
        return sorted(self._media)


__all__ = ["InMemoryResourceCatalog", "ItemRecord", "MediaRecord", "ResourceCatalog"]
