"""
boundrand configuration.

Typed configuration objects for:
- The entropy source a generator reads from (OS interface or a file/device)
- The optional seeded-once entropy pool and its re-seed policy
- Optional Prometheus metrics

Provides:
- Dataclass-based configs with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML* file (*if PyYAML is available)

Every bad value, whatever its origin, is reported as a `ValueError` that names
the offending key.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from .constants import (
    DEFAULT_POOL_RESEED_AFTER_DRAWS,
    DEFAULT_POOL_RESEED_INTERVAL_S,
)

logger = logging.getLogger(__name__)

_SOURCE_KINDS = ("os", "file")

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


# -------------------------
# Value coercion
# -------------------------


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValueError(f"expected a boolean, got {raw!r}")


def _coerce(key: str, raw: Any, cast: Any, *, from_text: bool = True) -> Any:
    """
    Convert `raw` to `cast`.

    With from_text (environment variables) numbers are parsed from strings.
    Otherwise `raw` is an already-typed JSON/YAML scalar and must have the
    right type: "10" is not an int there. Bools are never accepted as numbers.
    Raises ValueError naming `key` on anything that does not convert cleanly.
    """
    try:
        if cast is bool:
            return _parse_bool(raw)
        if isinstance(raw, bool):
            raise ValueError("booleans are not numbers or strings")
        if cast is str:
            if not isinstance(raw, str):
                raise ValueError("expected a string")
            return raw
        if isinstance(raw, str):
            if not from_text:
                raise ValueError("expected a number, got a string")
            return cast(raw)
        if cast is int:
            if isinstance(raw, float) and raw.is_integer():
                return int(raw)
            if not isinstance(raw, int):
                raise ValueError("expected an integer")
            return raw
        if not isinstance(raw, (int, float)):
            raise ValueError("expected a number")
        return cast(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value for {key}: {raw!r}") from e


def _require(key: str, value: Any, *types: type) -> None:
    if isinstance(value, bool) and bool not in types:
        raise ValueError(f"{key} must be {' or '.join(t.__name__ for t in types)}, got bool")
    if not isinstance(value, types):
        raise ValueError(
            f"{key} must be {' or '.join(t.__name__ for t in types)}, "
            f"got {type(value).__name__}"
        )


# -------------------------
# Sub-configs
# -------------------------


@dataclass
class SourceConfig:
    """
    Where entropy comes from.

    kind:
        - "os"   : the OS secure random interface (default)
        - "file" : read from `path` (character device, FIFO, file)
    path: required when kind == "file"
    reopen_each_call: open/close the file per request instead of keeping a
                      shared handle
    """

    kind: str = "os"
    path: Optional[str] = None
    reopen_each_call: bool = True

    def validate(self) -> None:
        _require("source.kind", self.kind, str)
        if self.path is not None:
            _require("source.path", self.path, str)
        _require("source.reopen_each_call", self.reopen_each_call, bool)
        if self.kind not in _SOURCE_KINDS:
            raise ValueError(f"source kind must be one of {_SOURCE_KINDS}, got {self.kind!r}")
        if self.kind == "file" and not self.path:
            raise ValueError("source path is required when kind is 'file'")


@dataclass
class PoolConfig:
    """
    Seeded-once entropy pool. Disabled by default: every draw reads the
    configured source directly.

    reseed_after_draws: requests served before fresh upstream bytes are mixed in
    reseed_interval_s: seconds between re-seeds regardless of traffic
    """

    enabled: bool = False
    reseed_after_draws: int = DEFAULT_POOL_RESEED_AFTER_DRAWS
    reseed_interval_s: float = DEFAULT_POOL_RESEED_INTERVAL_S

    def validate(self) -> None:
        _require("pool.enabled", self.enabled, bool)
        _require("pool.reseed_after_draws", self.reseed_after_draws, int)
        _require("pool.reseed_interval_s", self.reseed_interval_s, int, float)
        if self.reseed_after_draws <= 0:
            raise ValueError("reseed_after_draws must be > 0")
        if self.reseed_interval_s <= 0:
            raise ValueError("reseed_interval_s must be > 0")


# -------------------------
# Top-level config
# -------------------------


@dataclass
class BoundRandConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    pool: PoolConfig = field(default_factory=PoolConfig)
    metrics_enabled: bool = False
    metrics_namespace: str = "boundrand"

    def validate(self) -> None:
        self.source.validate()
        self.pool.validate()
        _require("metrics_enabled", self.metrics_enabled, bool)
        _require("metrics_namespace", self.metrics_namespace, str)
        if not self.metrics_namespace or not self.metrics_namespace.replace("_", "").isalnum():
            raise ValueError("metrics_namespace must be a non-empty identifier")

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "BOUNDRAND_") -> "BoundRandConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys:
          - BOUNDRAND_SOURCE=os | file
          - BOUNDRAND_SOURCE_PATH=/dev/hwrng
          - BOUNDRAND_SOURCE_REOPEN=true

          - BOUNDRAND_POOL_ENABLED=false
          - BOUNDRAND_POOL_RESEED_DRAWS=4096
          - BOUNDRAND_POOL_RESEED_INTERVAL_S=300

          - BOUNDRAND_METRICS_ENABLED=false
          - BOUNDRAND_METRICS_NAMESPACE=boundrand

        Booleans accept 1/true/yes/on and 0/false/no/off (case-insensitive).
        """

        def _get(name: str, cast: Any, default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None:
                return default
            return _coerce(key, raw, cast)

        cfg = BoundRandConfig(
            source=SourceConfig(
                kind=_get("SOURCE", str, "os"),
                path=_get("SOURCE_PATH", str, None),
                reopen_each_call=_get("SOURCE_REOPEN", bool, True),
            ),
            pool=PoolConfig(
                enabled=_get("POOL_ENABLED", bool, False),
                reseed_after_draws=_get(
                    "POOL_RESEED_DRAWS", int, DEFAULT_POOL_RESEED_AFTER_DRAWS
                ),
                reseed_interval_s=_get(
                    "POOL_RESEED_INTERVAL_S", float, DEFAULT_POOL_RESEED_INTERVAL_S
                ),
            ),
            metrics_enabled=_get("METRICS_ENABLED", bool, False),
            metrics_namespace=_get("METRICS_NAMESPACE", str, "boundrand"),
        )
        cfg.validate()
        logger.debug("loaded boundrand config from env (prefix=%s)", prefix)
        return cfg

    @staticmethod
    def from_file(path: str) -> "BoundRandConfig":
        """
        Load configuration from a JSON or YAML file. Keys mirror the dataclass
        structure. Example (YAML):

            source:
              kind: file
              path: /dev/hwrng
              reopen_each_call: false
            pool:
              enabled: true
              reseed_after_draws: 1024
              reseed_interval_s: 60
            metrics_enabled: true
        """
        text = _read_text(path)
        data = _parse_json_or_yaml(text, path)
        if not isinstance(data, dict):
            raise ValueError(f"{path!r} must contain a mapping at the top level")

        def _section(name: str) -> Dict[str, Any]:
            d = data.get(name) or {}
            if not isinstance(d, dict):
                raise ValueError(f"Invalid value for {name}: expected a mapping, got {d!r}")
            return d

        def _pop(d: Dict[str, Any], key: str, cast: Any, default: Any) -> Any:
            raw = d.get(key.rsplit(".", 1)[-1])
            if raw is None:
                return default
            return _coerce(key, raw, cast, from_text=False)

        source_d = _section("source")
        pool_d = _section("pool")

        cfg = BoundRandConfig(
            source=SourceConfig(
                kind=_pop(source_d, "source.kind", str, "os"),
                path=_pop(source_d, "source.path", str, None),
                reopen_each_call=_pop(source_d, "source.reopen_each_call", bool, True),
            ),
            pool=PoolConfig(
                enabled=_pop(pool_d, "pool.enabled", bool, False),
                reseed_after_draws=_pop(
                    pool_d, "pool.reseed_after_draws", int, DEFAULT_POOL_RESEED_AFTER_DRAWS
                ),
                reseed_interval_s=_pop(
                    pool_d, "pool.reseed_interval_s", float, DEFAULT_POOL_RESEED_INTERVAL_S
                ),
            ),
            metrics_enabled=_pop(data, "metrics_enabled", bool, False),
            metrics_namespace=_pop(data, "metrics_namespace", str, "boundrand"),
        )
        cfg.validate()
        logger.debug("loaded boundrand config from %s", path)
        return cfg


# -------------------------
# Utilities
# -------------------------


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_json_or_yaml(text: str, path_hint: str) -> Dict[str, Any]:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    try:
        import yaml  # type: ignore

        return yaml.safe_load(text) or {}
    except Exception as e:
        raise ValueError(
            f"Failed to parse {path_hint!r} as JSON or YAML. "
            f"Install PyYAML or provide valid JSON. Original error: {e}"
        ) from e


DEFAULT: BoundRandConfig = BoundRandConfig()

__all__ = [
    "SourceConfig",
    "PoolConfig",
    "BoundRandConfig",
    "DEFAULT",
]
