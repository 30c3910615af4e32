"""Health status record — one outcome plus an open annotation bag.

Every probe and the composite checker produce a ``Health``. Status setters
and ``add_info`` return the record itself so results read fluently:

    Health().set_down().add_info("error", "connection refused")
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class Status(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    OUT_OF_SERVICE = "OUT OF SERVICE"
    UNKNOWN = "UNKNOWN"


class Health:
    """A single health outcome. Starts as UNKNOWN."""

    __slots__ = ("status", "info")

    def __init__(self) -> None:
        self.status: Status = Status.UNKNOWN
        self.info: dict[str, Any] | None = {}

    def __repr__(self) -> str:
        return f"Health(status={self.status.value!r}, info={self.info!r})"

    # ── Status setters ───────────────────────────────────────────────────

    def set_up(self) -> Health:
        self.status = Status.UP
        return self

    def set_down(self) -> Health:
        self.status = Status.DOWN
        return self

    def set_out_of_service(self) -> Health:
        self.status = Status.OUT_OF_SERVICE
        return self

    def set_unknown(self) -> Health:
        self.status = Status.UNKNOWN
        return self

    # ── Predicates ───────────────────────────────────────────────────────

    def is_up(self) -> bool:
        return self.status == Status.UP

    def is_down(self) -> bool:
        return self.status == Status.DOWN

    def is_out_of_service(self) -> bool:
        return self.status == Status.OUT_OF_SERVICE

    def is_unknown(self) -> bool:
        return self.status == Status.UNKNOWN

    # ── Annotations ──────────────────────────────────────────────────────

    def add_info(self, key: str, value: Any) -> Health:
        """Set an annotation, overwriting any previous value for ``key``."""
        if self.info is None:
            self.info = {}
        self.info[key] = value
        return self

    def get_info(self, key: str) -> Any:
        """Return the annotation for ``key``, or None if it was never set."""
        if self.info is None:
            return None
        return self.info.get(key)

    # ── Serialization ────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a plain dict.

        Annotations become top-level fields and nested ``Health`` values are
        flattened recursively. ``status`` is written last so an annotation
        with that key can never mask the real status.
        """
        data: dict[str, Any] = {}
        for key, value in (self.info or {}).items():
            data[key] = value.to_dict() if isinstance(value, Health) else value
        data["status"] = self.status.value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
