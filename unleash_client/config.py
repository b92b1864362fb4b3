"""Client settings.

Values can be passed explicitly or read from ``UNLEASH_*`` environment
variables. Instances are immutable.
"""

from typing import Dict, List, Optional

from pydantic_settings import BaseSettings

from unleash_client.strategies import ActivationStrategy


class UnleashSettings(BaseSettings):
    app_name: str
    instance_id: str = "default"
    unleash_api: str
    feature_path: str = "/client/features"
    api_token: Optional[str] = None

    # Extra headers sent with every fetch; they override the generated ones
    headers: Dict[str, str] = {}

    # Seconds between refreshes; None or <= 0 disables polling
    polling_interval: Optional[float] = 15.0
    # Timeout for the HTTP client the library creates itself
    request_timeout: float = 10.0

    # Also fire the update callback when a fallback published a backup
    notify_on_fallback: bool = False

    strategies: List[ActivationStrategy] = []

    model_config = {
        "env_prefix": "UNLEASH_",
        "case_sensitive": False,
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    @property
    def feature_url(self) -> str:
        return self.unleash_api.rstrip("/") + "/" + self.feature_path.lstrip("/")

    @property
    def polling_enabled(self) -> bool:
        return self.polling_interval is not None and self.polling_interval > 0

    @property
    def backup_key(self) -> str:
        """Scope of the backup record written for these settings."""
        return f"{self.app_name}@{self.feature_url}"

    def to_headers(self) -> Dict[str, str]:
        headers = {
            "UNLEASH-APPNAME": self.app_name,
            "UNLEASH-INSTANCEID": self.instance_id,
        }
        if self.api_token:
            headers["Authorization"] = self.api_token
        headers.update(self.headers)
        return headers


_settings_cache: Optional[UnleashSettings] = None


def get_settings() -> UnleashSettings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = UnleashSettings()  # type: ignore[call-arg]
    return _settings_cache
