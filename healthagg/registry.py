"""Probe registry — loads probes.yaml and builds the composite checker.

Example file:

    interval_seconds: 30
    info:
      service: billing-api
    probes:
      - name: db
        type: tcp
        addr: db.internal:5432
        timeout_ms: 2000
      - name: upstream
        type: http
        url: https://upstream.example/health
        expect_body_contains: ok
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from healthagg.config import settings
from healthagg.health.checker import Checker, CheckerFunc, CompositeChecker
from healthagg.health.status import Health
from healthagg.probes.tcp import TCPChecker
from healthagg.probes.url import URLChecker

logger = logging.getLogger(__name__)


# ── Data models ──────────────────────────────────────────────────────────────


@dataclass
class ProbeDef:
    """Definition of a single probe from the registry file."""

    name: str
    type: str  # tcp | http
    addr: str = ""  # for tcp probes
    url: str = ""
    method: str = "GET"
    expected_status: int = 200
    expect_body_contains: str = ""
    timeout_ms: int = field(default_factory=lambda: settings.default_timeout_ms)


# ── Probe factory ────────────────────────────────────────────────────────────


PROBE_BUILDERS: dict[str, Callable[[ProbeDef], Checker]] = {
    "tcp": lambda p: TCPChecker(p.addr, timeout=p.timeout_ms / 1000),
    "http": lambda p: URLChecker(
        p.url,
        timeout=p.timeout_ms / 1000,
        method=p.method,
        expect_body_contains=p.expect_body_contains,
        expect_status_code=p.expected_status,
    ),
}
PROBE_BUILDERS["url"] = PROBE_BUILDERS["http"]


def build_probe(defn: ProbeDef) -> Checker:
    """Instantiate the checker for a probe definition.

    An unknown type still yields a checker, one that always reports UNKNOWN.
    """
    builder = PROBE_BUILDERS.get(defn.type)
    if not builder:
        logger.warning("Probe %r has unknown type %r", defn.name, defn.type)
        message = f"Unknown probe type: {defn.type}"
        return CheckerFunc(lambda: Health().set_unknown().add_info("error", message))
    return builder(defn)


# ── Registry ─────────────────────────────────────────────────────────────────


class ProbeRegistry:
    """Loads and caches probe definitions from probes.yaml."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path(settings.probes_file)
        self._probes: list[ProbeDef] = []
        self._info: dict[str, Any] = {}
        self._interval: float | None = None
        self._loaded = False

    def load(self, force: bool = False) -> list[ProbeDef]:
        """Parse probes.yaml and return the probe definitions."""
        if self._loaded and not force:
            return self._probes

        self._probes = []
        self._info = {}
        self._interval = None

        if not self._path.exists():
            logger.warning("Probe file not found: %s", self._path)
            self._loaded = True
            return self._probes

        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except Exception as e:
            logger.error("Failed to parse %s: %s", self._path, e)
            self._loaded = True
            return self._probes

        if not isinstance(raw, dict):
            logger.error("Expected a mapping at the top of %s", self._path)
            self._loaded = True
            return self._probes

        raw_info = raw.get("info") or {}
        if isinstance(raw_info, dict):
            self._info = dict(raw_info)
        else:
            logger.warning("Ignoring malformed info in %s: expected a mapping", self._path)

        if raw.get("interval_seconds") is not None:
            try:
                self._interval = float(raw["interval_seconds"])
            except (TypeError, ValueError):
                logger.warning(
                    "Ignoring malformed interval_seconds in %s: %r", self._path, raw["interval_seconds"],
                )
            else:
                if self._interval <= 0:
                    logger.warning("Ignoring non-positive interval_seconds in %s", self._path)
                    self._interval = None

        for entry in raw.get("probes", []) or []:
            try:
                self._probes.append(_parse_probe(entry))
            except Exception as e:
                logger.warning("Skipping malformed probe entry: %s", e)

        self._loaded = True
        logger.info("Loaded %d probes from %s", len(self._probes), self._path)
        return self._probes

    @property
    def probes(self) -> list[ProbeDef]:
        return self.load()

    @property
    def info(self) -> dict[str, Any]:
        self.load()
        return self._info

    @property
    def interval_seconds(self) -> float:
        self.load()
        if self._interval is None:
            return settings.check_interval_seconds
        return self._interval

    def get(self, name: str) -> ProbeDef | None:
        return next((p for p in self.probes if p.name == name), None)

    def reload(self) -> list[ProbeDef]:
        """Force reload from disk."""
        return self.load(force=True)

    def build_checker(self) -> CompositeChecker:
        """Build a CompositeChecker holding every probe and the static info."""
        checker = CompositeChecker()
        for defn in self.probes:
            checker.add_checker(defn.name, build_probe(defn))
        for key, value in self.info.items():
            checker.add_info(key, value)
        return checker


# ── Parsers ──────────────────────────────────────────────────────────────────


def _parse_probe(raw: dict[str, Any]) -> ProbeDef:
    return ProbeDef(
        name=raw["name"],
        type=raw.get("type", "http"),
        addr=raw.get("addr", ""),
        url=raw.get("url", ""),
        method=raw.get("method", "GET"),
        expected_status=int(raw.get("expected_status", 200)),
        expect_body_contains=raw.get("expect_body_contains", ""),
        timeout_ms=int(raw.get("timeout_ms", settings.default_timeout_ms)),
    )
