"""Feature toggle records and snapshots.

Provides:
- Toggle and strategy binding definitions
- Immutable snapshots keyed by toggle name
- Decoding of the feature endpoint payload
- Evaluation results
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from unleash_client.errors import DecodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyBinding:
    """Which strategy a toggle consults, and with what parameters."""
    name: str
    parameters: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StrategyBinding":
        """Create from a ``{"name", "parameters"}`` record."""
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            raise DecodeError(f"Strategy record without a name: {data!r}")

        raw_params = data.get("parameters") or {}
        if not isinstance(raw_params, dict):
            raise DecodeError(f"Parameters of strategy '{data['name']}' must be an object")

        parameters = {
            str(key): value if isinstance(value, str) else str(value)
            for key, value in raw_params.items()
            if value is not None
        }
        return cls(name=data["name"], parameters=MappingProxyType(parameters))


@dataclass(frozen=True)
class FeatureToggle:
    """A feature toggle definition."""
    name: str
    enabled: Optional[bool] = None
    strategies: Tuple[StrategyBinding, ...] = ()
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeatureToggle":
        """Create from a toggle record of the feature payload."""
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            raise DecodeError(f"Toggle record without a name: {data!r}")

        enabled = data.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            raise DecodeError(f"Toggle '{data['name']}' has a non-boolean 'enabled'")

        strategies = data.get("strategies") or []
        if not isinstance(strategies, list):
            raise DecodeError(f"Strategies of toggle '{data['name']}' must be a list")

        return cls(
            name=data["name"],
            enabled=enabled,
            strategies=tuple(StrategyBinding.from_dict(s) for s in strategies),
            description=data.get("description"),
        )


class ToggleSnapshot:
    """The complete, read-only set of toggles from one payload.

    Toggles keep payload order. If a name appears twice, the first record
    wins.
    """

    __slots__ = ("_toggles", "_by_name", "version")

    def __init__(self, toggles: List[FeatureToggle], version: int = 1):
        by_name: Dict[str, FeatureToggle] = {}
        for toggle in toggles:
            if toggle.name in by_name:
                logger.warning(
                    f"Duplicate toggle '{toggle.name}' ignored",
                    extra={"toggle": toggle.name},
                )
                continue
            by_name[toggle.name] = toggle

        self._toggles: Tuple[FeatureToggle, ...] = tuple(by_name.values())
        self._by_name: Mapping[str, FeatureToggle] = MappingProxyType(by_name)
        self.version = version

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToggleSnapshot":
        """Create from a decoded ``{"version", "features"}`` object."""
        if not isinstance(data, dict):
            raise DecodeError("Feature payload must be a JSON object")

        features = data.get("features")
        if not isinstance(features, list):
            raise DecodeError("Feature payload has no 'features' list")

        version = data.get("version", 1)
        if not isinstance(version, int) or isinstance(version, bool):
            raise DecodeError(f"Unsupported payload version: {version!r}")

        return cls([FeatureToggle.from_dict(f) for f in features], version=version)

    @classmethod
    def from_json(cls, payload: Union[str, bytes]) -> "ToggleSnapshot":
        """Decode raw payload text (or UTF-8 bytes)."""
        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeError(f"Payload is not valid UTF-8: {e}")

        try:
            data = json.loads(payload)
        except (ValueError, RecursionError) as e:
            raise DecodeError(f"Invalid JSON payload: {type(e).__name__}: {e}")

        return cls.from_dict(data)

    def get(self, name: str) -> Optional[FeatureToggle]:
        """Get a toggle by exact name."""
        return self._by_name.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[FeatureToggle]:
        return iter(self._toggles)

    def __len__(self) -> int:
        return len(self._toggles)

    def __repr__(self) -> str:
        return f"ToggleSnapshot(version={self.version}, toggles={len(self._toggles)})"


@dataclass
class EvaluationResult:
    """Result of toggle evaluation."""
    enabled: bool
    toggle_name: str
    reason: str = ""
    strategy: Optional[str] = None


__all__ = [
    "StrategyBinding",
    "FeatureToggle",
    "ToggleSnapshot",
    "EvaluationResult",
]
