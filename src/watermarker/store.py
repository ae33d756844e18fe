"""SQLite persistence for watermark sets, settings and assignments"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .errors import InvalidArgument, InvalidAssignment, PersistenceError, ResourceNotFound, WatermarkerError
from .logger import log
from .models import (
    Position,
    ResourceRef,
    ResourceType,
    ResourceWatermarkAssignment,
    SettingType,
    WatermarkSet,
    WatermarkSetting,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

SCHEMA = """
CREATE TABLE IF NOT EXISTS watermark_set (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    is_default INTEGER NOT NULL DEFAULT 0,
    enabled INTEGER NOT NULL DEFAULT 1,
    created TEXT NOT NULL,
    modified TEXT
);

CREATE TABLE IF NOT EXISTS watermark_setting (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    set_id INTEGER NOT NULL REFERENCES watermark_set(id) ON DELETE CASCADE,
    type TEXT NOT NULL,
    position TEXT NOT NULL,
    opacity REAL NOT NULL CHECK (opacity >= 0.0 AND opacity <= 1.0),
    image_ref TEXT NOT NULL,
    created TEXT NOT NULL,
    modified TEXT
);

CREATE TABLE IF NOT EXISTS watermark_assignment (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    resource_type TEXT NOT NULL CHECK (resource_type IN ('item', 'item_set', 'media')),
    resource_id INTEGER NOT NULL,
    watermark_set_id INTEGER REFERENCES watermark_set(id) ON DELETE SET NULL,
    explicitly_no_watermark INTEGER NOT NULL DEFAULT 0,
    created TEXT NOT NULL,
    modified TEXT,
    UNIQUE (resource_type, resource_id),
    CHECK (NOT (watermark_set_id IS NOT NULL AND explicitly_no_watermark = 1))
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _build(model: Type[ModelT], error: Type[WatermarkerError] = InvalidArgument, **data: Any) -> ModelT:
    """Validate a record before it is written, translating pydantic errors."""
    try:
        return model(**data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or model.__name__
        raise error(f"{field}: {first.get('msg')}") from exc


class WatermarkStore:
    """Repository for watermark sets, their settings and resource assignments"""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open watermark database {self.db_path}: {e}") from e
        self._init_db()

    def _init_db(self):
        """Initialize database schema"""
        try:
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot initialize watermark database: {e}") from e

    def close(self):
        self._conn.close()

    @contextmanager
    def _transaction(
        self, integrity_error: Type[WatermarkerError] = PersistenceError
    ) -> Iterator[sqlite3.Connection]:
        """Run statements in one transaction, rolled back on any error.

        Constraint violations are raised as ``integrity_error``.
        """
        try:
            with self._conn:
                yield self._conn
        except sqlite3.IntegrityError as e:
            log.error(f"Watermark database constraint failed: {e}")
            raise integrity_error(str(e)) from e
        except sqlite3.Error as e:
            log.error(f"Watermark database error: {e}")
            raise PersistenceError(str(e)) from e

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

    # ---- watermark sets ---- #

    def create_set(self, name: str, is_default: bool = False, enabled: bool = True) -> WatermarkSet:
        candidate = _build(WatermarkSet, name=name, is_default=is_default, enabled=enabled)
        with self._transaction() as conn:
            if candidate.is_default:
                conn.execute("UPDATE watermark_set SET is_default = 0")
            cursor = conn.execute(
                "INSERT INTO watermark_set (name, is_default, enabled, created) VALUES (?, ?, ?, ?)",
                (candidate.name, int(candidate.is_default), int(candidate.enabled), _now()),
            )
        set_id = cursor.lastrowid
        log.info(f"Created watermark set #{set_id} '{candidate.name}' (default={candidate.is_default})")
        return self.get_set(set_id)

    def find_set(self, set_id: int) -> Optional[WatermarkSet]:
        rows = self._query("SELECT * FROM watermark_set WHERE id = ?", (set_id,))
        if not rows:
            return None
        return self._hydrate_set(rows[0], self.list_settings(set_id))

    def get_set(self, set_id: int) -> WatermarkSet:
        watermark_set = self.find_set(set_id)
        if watermark_set is None:
            raise ResourceNotFound(f"Watermark set #{set_id} not found")
        return watermark_set

    def list_sets(self, enabled: Optional[bool] = None) -> List[WatermarkSet]:
        if enabled is None:
            rows = self._query("SELECT * FROM watermark_set ORDER BY id")
        else:
            rows = self._query("SELECT * FROM watermark_set WHERE enabled = ? ORDER BY id", (int(enabled),))
        settings_by_set: Dict[int, List[WatermarkSetting]] = {}
        for setting in self._all_settings():
            settings_by_set.setdefault(setting.set_id, []).append(setting)
        return [self._hydrate_set(row, settings_by_set.get(row["id"], [])) for row in rows]

    def update_set(
        self,
        set_id: int,
        name: Optional[str] = None,
        is_default: Optional[bool] = None,
        enabled: Optional[bool] = None,
    ) -> WatermarkSet:
        current = self.get_set(set_id)
        updated = _build(
            WatermarkSet,
            id=current.id,
            name=current.name if name is None else name,
            is_default=current.is_default if is_default is None else is_default,
            enabled=current.enabled if enabled is None else enabled,
        )
        with self._transaction() as conn:
            if updated.is_default:
                conn.execute("UPDATE watermark_set SET is_default = 0 WHERE id != ?", (set_id,))
            conn.execute(
                "UPDATE watermark_set SET name = ?, is_default = ?, enabled = ?, modified = ? WHERE id = ?",
                (updated.name, int(updated.is_default), int(updated.enabled), _now(), set_id),
            )
        return self.get_set(set_id)

    def set_default(self, set_id: int) -> WatermarkSet:
        """Make one set the default, clearing the flag on every other set atomically."""
        with self._transaction() as conn:
            exists = conn.execute("SELECT 1 FROM watermark_set WHERE id = ?", (set_id,)).fetchone()
            if exists is None:
                raise ResourceNotFound(f"Watermark set #{set_id} not found")
            conn.execute("UPDATE watermark_set SET is_default = 0 WHERE id != ? AND is_default = 1", (set_id,))
            conn.execute(
                "UPDATE watermark_set SET is_default = 1, modified = ? WHERE id = ? AND is_default = 0",
                (_now(), set_id),
            )
        log.info(f"Watermark set #{set_id} is now the default")
        return self.get_set(set_id)

    def get_default_set(self) -> Optional[WatermarkSet]:
        """Return the enabled default set, if any."""
        rows = self._query("SELECT * FROM watermark_set WHERE is_default = 1 AND enabled = 1 ORDER BY id LIMIT 1")
        if not rows:
            return None
        return self._hydrate_set(rows[0], self.list_settings(rows[0]["id"]))

    def delete_set(self, set_id: int) -> None:
        """Delete a set; its settings go with it and assignments to it are nulled."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM watermark_set WHERE id = ?", (set_id,))
        if cursor.rowcount == 0:
            raise ResourceNotFound(f"Watermark set #{set_id} not found")
        log.info(f"Deleted watermark set #{set_id}")

    def _hydrate_set(self, row: sqlite3.Row, settings: List[WatermarkSetting]) -> WatermarkSet:
        return WatermarkSet(**dict(row), settings=settings)

    # ---- watermark settings ---- #

    def add_setting(
        self,
        set_id: int,
        image_ref: str,
        opacity: float,
        type: Union[SettingType, str] = SettingType.ALL,
        position: Union[Position, str] = Position.BOTTOM_RIGHT,
    ) -> WatermarkSetting:
        candidate = _build(
            WatermarkSetting,
            set_id=set_id,
            type=type,
            position=position,
            opacity=opacity,
            image_ref=image_ref,
        )
        if self.find_set(set_id) is None:
            raise ResourceNotFound(f"Watermark set #{set_id} not found")
        with self._transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO watermark_setting (set_id, type, position, opacity, image_ref, created) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    candidate.set_id,
                    candidate.type.value,
                    candidate.position.value,
                    candidate.opacity,
                    candidate.image_ref,
                    _now(),
                ),
            )
        return self.get_setting(cursor.lastrowid)

    def get_setting(self, setting_id: int) -> WatermarkSetting:
        rows = self._query("SELECT * FROM watermark_setting WHERE id = ?", (setting_id,))
        if not rows:
            raise ResourceNotFound(f"Watermark setting #{setting_id} not found")
        return WatermarkSetting(**dict(rows[0]))

    def list_settings(self, set_id: int) -> List[WatermarkSetting]:
        rows = self._query("SELECT * FROM watermark_setting WHERE set_id = ? ORDER BY id", (set_id,))
        return [WatermarkSetting(**dict(row)) for row in rows]

    def _all_settings(self) -> List[WatermarkSetting]:
        rows = self._query("SELECT * FROM watermark_setting ORDER BY id")
        return [WatermarkSetting(**dict(row)) for row in rows]

    def update_setting(self, setting_id: int, **changes: Any) -> WatermarkSetting:
        current = self.get_setting(setting_id)
        unknown = set(changes) - {"type", "position", "opacity", "image_ref"}
        if unknown:
            raise InvalidArgument(f"Unknown setting fields: {', '.join(sorted(unknown))}")
        data = current.model_dump()
        data.update({key: value for key, value in changes.items() if value is not None})
        updated = _build(WatermarkSetting, **data)
        with self._transaction() as conn:
            conn.execute(
                "UPDATE watermark_setting SET type = ?, position = ?, opacity = ?, image_ref = ?, modified = ? "
                "WHERE id = ?",
                (updated.type.value, updated.position.value, updated.opacity, updated.image_ref, _now(), setting_id),
            )
        return self.get_setting(setting_id)

    def delete_setting(self, setting_id: int) -> None:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM watermark_setting WHERE id = ?", (setting_id,))
        if cursor.rowcount == 0:
            raise ResourceNotFound(f"Watermark setting #{setting_id} not found")

    # ---- assignments ---- #

    def find_assignment(self, ref: ResourceRef) -> Optional[ResourceWatermarkAssignment]:
        rows = self._query(
            "SELECT * FROM watermark_assignment WHERE resource_type = ? AND resource_id = ?",
            (ref.resource_type.value, ref.resource_id),
        )
        if not rows:
            return None
        return ResourceWatermarkAssignment(**dict(rows[0]))

    def save_assignment(
        self,
        ref: ResourceRef,
        watermark_set_id: Optional[int] = None,
        explicitly_no_watermark: bool = False,
    ) -> ResourceWatermarkAssignment:
        """Insert or update the assignment row for a resource."""
        if watermark_set_id is not None and explicitly_no_watermark:
            raise InvalidAssignment("Cannot have both a watermark set and explicitly no watermark")
        candidate = _build(
            ResourceWatermarkAssignment,
            resource_type=ref.resource_type,
            resource_id=ref.resource_id,
            watermark_set_id=watermark_set_id,
            explicitly_no_watermark=explicitly_no_watermark,
        )
        now = _now()
        with self._transaction(integrity_error=InvalidAssignment) as conn:
            conn.execute(
                "INSERT INTO watermark_assignment "
                "(resource_type, resource_id, watermark_set_id, explicitly_no_watermark, created) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT (resource_type, resource_id) DO UPDATE SET "
                "watermark_set_id = excluded.watermark_set_id, "
                "explicitly_no_watermark = excluded.explicitly_no_watermark, "
                "modified = ?",
                (
                    candidate.resource_type.value,
                    candidate.resource_id,
                    candidate.watermark_set_id,
                    int(candidate.explicitly_no_watermark),
                    now,
                    now,
                ),
            )
        return self.find_assignment(ref)

    def delete_assignment(self, ref: ResourceRef) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM watermark_assignment WHERE resource_type = ? AND resource_id = ?",
                (ref.resource_type.value, ref.resource_id),
            )
        return cursor.rowcount > 0

    def list_assignments(
        self,
        resource_type: Optional[ResourceType] = None,
        watermark_set_id: Optional[int] = None,
    ) -> List[ResourceWatermarkAssignment]:
        clauses = []
        params: List[Any] = []
        if resource_type is not None:
            clauses.append("resource_type = ?")
            params.append(ResourceType.parse(resource_type).value)
        if watermark_set_id is not None:
            clauses.append("watermark_set_id = ?")
            params.append(watermark_set_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._query(f"SELECT * FROM watermark_assignment{where} ORDER BY id", tuple(params))
        return [ResourceWatermarkAssignment(**dict(row)) for row in rows]


__all__ = ["WatermarkStore"]
