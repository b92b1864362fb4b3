"""Activation strategies and the strategy registry.

Provides:
- The ActivationStrategy base class
- Built-in default and unknown strategies
- Opt-in stock strategies that need no evaluation context
- A write-once registry resolving strategy names
"""

from __future__ import annotations

import logging
import random
import socket
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)


class ActivationStrategy(ABC):
    """A named rule deciding whether a toggle is active for its parameters."""

    name: str = ""

    @abstractmethod
    def is_enabled(self, parameters: Mapping[str, str]) -> bool:
        """Evaluate the strategy against the parameters of a binding."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class DefaultStrategy(ActivationStrategy):
    """Strategy that is always on."""

    name = "default"

    def is_enabled(self, parameters: Mapping[str, str]) -> bool:
        return True


class UnknownStrategy(ActivationStrategy):
    """Stands in for any strategy name the registry does not know."""

    name = "unknown"

    def is_enabled(self, parameters: Mapping[str, str]) -> bool:
        return False


class FunctionStrategy(ActivationStrategy):
    """Wrap a plain callable as a named strategy."""

    def __init__(self, name: str, func: Callable[[Mapping[str, str]], bool]):
        self.name = name
        self._func = func

    def is_enabled(self, parameters: Mapping[str, str]) -> bool:
        return bool(self._func(parameters))


class GradualRolloutRandomStrategy(ActivationStrategy):
    """Enable for a random share of evaluations given by ``percentage``."""

    name = "gradualRolloutRandom"

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def is_enabled(self, parameters: Mapping[str, str]) -> bool:
        try:
            percentage = float(parameters.get("percentage", 0))
        except (TypeError, ValueError):
            return False
        if percentage <= 0:
            return False
        if percentage >= 100:
            return True
        return self._rng.random() * 100 < percentage


class ApplicationHostnameStrategy(ActivationStrategy):
    """Enable when the local host name is listed in ``hostNames``."""

    name = "applicationHostname"

    def __init__(self, hostname: Optional[str] = None):
        self.hostname = (hostname or socket.gethostname()).lower()

    def is_enabled(self, parameters: Mapping[str, str]) -> bool:
        host_names = parameters.get("hostNames", "")
        allowed = {h.strip().lower() for h in str(host_names).split(",") if h.strip()}
        return self.hostname in allowed


UNKNOWN_STRATEGY = UnknownStrategy()


class StrategyRegistry:
    """Resolves strategy names to strategies.

    The default strategy is registered first, followed by the caller's
    strategies in order. When several strategies share a name the first one
    registered wins. The registry is never modified after construction.
    """

    def __init__(self, strategies: Optional[Iterable[ActivationStrategy]] = None):
        self._strategies: List[ActivationStrategy] = [DefaultStrategy()]
        self._strategies.extend(strategies or [])

        self._by_name: Dict[str, ActivationStrategy] = {}
        for strategy in self._strategies:
            if strategy.name in self._by_name:
                logger.warning(
                    f"Strategy '{strategy.name}' is shadowed by an earlier registration",
                    extra={"strategy": strategy.name},
                )
                continue
            self._by_name[strategy.name] = strategy

    def resolve(self, name: str) -> ActivationStrategy:
        """Return the strategy registered under ``name`` or the unknown strategy."""
        return self._by_name.get(name, UNKNOWN_STRATEGY)

    @property
    def names(self) -> List[str]:
        return list(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._strategies)


__all__ = [
    "ActivationStrategy",
    "DefaultStrategy",
    "UnknownStrategy",
    "FunctionStrategy",
    "GradualRolloutRandomStrategy",
    "ApplicationHostnameStrategy",
    "UNKNOWN_STRATEGY",
    "StrategyRegistry",
]
