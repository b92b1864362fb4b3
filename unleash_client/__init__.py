"""Unleash feature toggle client.

Provides:
- Background refresh of toggles from an Unleash API
- Backup of the last valid payload for offline starts
- Synchronous toggle evaluation with pluggable strategies
"""

from unleash_client.backup import (
    FileToggleBackup,
    InMemoryToggleBackup,
    ReadBackup,
    ToggleBackupRepository,
    WriteBackup,
)
from unleash_client.client import RefreshState, Unleash, UpdateCallback
from unleash_client.config import UnleashSettings, get_settings
from unleash_client.decorators import feature_flag
from unleash_client.errors import (
    BackupUnavailable,
    DecodeError,
    ErrorCode,
    TransportError,
    UnleashError,
)
from unleash_client.features import (
    EvaluationResult,
    FeatureToggle,
    StrategyBinding,
    ToggleSnapshot,
)
from unleash_client.strategies import (
    ActivationStrategy,
    ApplicationHostnameStrategy,
    DefaultStrategy,
    FunctionStrategy,
    GradualRolloutRandomStrategy,
    StrategyRegistry,
    UnknownStrategy,
)

__all__ = [
    # Client
    "Unleash",
    "RefreshState",
    "UpdateCallback",
    "UnleashSettings",
    "get_settings",
    "feature_flag",
    # Toggles
    "FeatureToggle",
    "StrategyBinding",
    "ToggleSnapshot",
    "EvaluationResult",
    # Strategies
    "ActivationStrategy",
    "DefaultStrategy",
    "UnknownStrategy",
    "FunctionStrategy",
    "GradualRolloutRandomStrategy",
    "ApplicationHostnameStrategy",
    "StrategyRegistry",
    # Backup
    "ReadBackup",
    "WriteBackup",
    "ToggleBackupRepository",
    "InMemoryToggleBackup",
    "FileToggleBackup",
    # Errors
    "ErrorCode",
    "UnleashError",
    "TransportError",
    "DecodeError",
    "BackupUnavailable",
]
