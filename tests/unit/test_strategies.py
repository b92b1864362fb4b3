"""Tests for activation strategies and the strategy registry."""

import pytest

from unleash_client import (
    ActivationStrategy,
    ApplicationHostnameStrategy,
    DefaultStrategy,
    FunctionStrategy,
    GradualRolloutRandomStrategy,
    StrategyRegistry,
    UnknownStrategy,
)


class FixedRandom:
    """Stand-in for random.Random returning a fixed value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class NamedStrategy(ActivationStrategy):
    def __init__(self, name: str, result: bool):
        self.name = name
        self.result = result

    def is_enabled(self, parameters):
        return self.result


class TestBuiltinStrategies:
    """Tests for the built-in strategies."""

    def test_default_strategy(self):
        """Test default strategy is always on."""
        strategy = DefaultStrategy()
        assert strategy.name == "default"
        assert strategy.is_enabled({}) is True
        assert strategy.is_enabled({"anything": "1"}) is True

    def test_unknown_strategy(self):
        """Test unknown strategy is always off."""
        strategy = UnknownStrategy()
        assert strategy.is_enabled({}) is False
        assert strategy.is_enabled({"percentage": "100"}) is False

    def test_function_strategy(self):
        """Test callable wrapped as a strategy."""
        strategy = FunctionStrategy("beta", lambda params: params.get("group") == "beta")
        assert strategy.name == "beta"
        assert strategy.is_enabled({"group": "beta"}) is True
        assert strategy.is_enabled({"group": "alpha"}) is False

    def test_repr(self):
        assert repr(DefaultStrategy()) == "DefaultStrategy(name='default')"


class TestGradualRolloutRandomStrategy:
    """Tests for random percentage rollout."""

    def test_bounds(self):
        strategy = GradualRolloutRandomStrategy(rng=FixedRandom(0.99))
        assert strategy.is_enabled({"percentage": "100"}) is True
        assert strategy.is_enabled({"percentage": "0"}) is False

    def test_threshold(self):
        assert GradualRolloutRandomStrategy(rng=FixedRandom(0.3)).is_enabled({"percentage": "50"}) is True
        assert GradualRolloutRandomStrategy(rng=FixedRandom(0.7)).is_enabled({"percentage": "50"}) is False

    def test_invalid_percentage(self):
        strategy = GradualRolloutRandomStrategy(rng=FixedRandom(0.0))
        assert strategy.is_enabled({"percentage": "lots"}) is False
        assert strategy.is_enabled({}) is False


class TestApplicationHostnameStrategy:
    """Tests for host name targeting."""

    def test_listed_host(self):
        strategy = ApplicationHostnameStrategy(hostname="web-1")
        assert strategy.is_enabled({"hostNames": "web-1, web-2"}) is True
        assert strategy.is_enabled({"hostNames": "WEB-1"}) is True

    def test_unlisted_host(self):
        strategy = ApplicationHostnameStrategy(hostname="web-1")
        assert strategy.is_enabled({"hostNames": "db-1"}) is False
        assert strategy.is_enabled({}) is False


class TestStrategyRegistry:
    """Tests for StrategyRegistry."""

    def test_default_always_present(self):
        """Test default strategy is registered without caller strategies."""
        registry = StrategyRegistry()
        assert "default" in registry
        assert isinstance(registry.resolve("default"), DefaultStrategy)
        assert len(registry) == 1

    def test_resolve_unknown(self):
        """Test unknown names resolve to the unknown strategy."""
        registry = StrategyRegistry()
        strategy = registry.resolve("userWithId")
        assert isinstance(strategy, UnknownStrategy)
        assert strategy.is_enabled({"userIds": "1"}) is False

    def test_resolve_custom(self):
        custom = NamedStrategy("custom", True)
        registry = StrategyRegistry([custom])
        assert registry.resolve("custom") is custom
        assert registry.names == ["default", "custom"]

    def test_builtin_default_not_overridden(self):
        """Test a caller strategy named 'default' is shadowed by the built-in."""
        registry = StrategyRegistry([NamedStrategy("default", False)])
        assert registry.resolve("default").is_enabled({}) is True
        assert len(registry) == 2

    def test_duplicate_names_first_wins(self, caplog):
        first = NamedStrategy("dup", True)
        second = NamedStrategy("dup", False)
        registry = StrategyRegistry([first, second])
        assert registry.resolve("dup") is first
        assert "shadowed" in caplog.text

    def test_lookup_is_exact(self):
        registry = StrategyRegistry([NamedStrategy("Custom", True)])
        assert isinstance(registry.resolve("custom"), UnknownStrategy)
        assert registry.resolve("Custom").is_enabled({}) is True

    def test_abstract_base(self):
        with pytest.raises(TypeError):
            ActivationStrategy()  # type: ignore[abstract]
