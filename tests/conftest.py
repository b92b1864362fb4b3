import os

import pytest


@pytest.fixture(autouse=True)
def env_isolation():
    """Isolate UNLEASH_* environment variables between tests."""
    backup = {k: v for k, v in os.environ.items() if k.upper().startswith("UNLEASH_")}
    for key in backup:
        os.environ.pop(key, None)
    try:
        yield
    finally:
        for key in [k for k in os.environ if k.upper().startswith("UNLEASH_")]:
            os.environ.pop(key, None)
        os.environ.update(backup)


@pytest.fixture(autouse=True)
def settings_cache_isolation():
    """Reset the process-wide settings between tests."""
    from unleash_client import config

    backup = config._settings_cache
    config._settings_cache = None
    try:
        yield
    finally:
        config._settings_cache = backup
