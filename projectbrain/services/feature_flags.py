"""Feature flags backed by configuration."""

from typing import Dict, Optional

from projectbrain.server.core.config import FeatureFlagConfig, settings

FLAG_KEYS = {
    "agent": "agent_feature_enabled",
    "emails": "emails_enabled",
    "push_notifications": "push_notifications_enabled",
}


class FeatureFlagService:
    def __init__(self, config: Optional[FeatureFlagConfig] = None) -> None:
        self.config = config or settings.feature_flags

    def get_all(self) -> Dict[str, bool]:
        return {key: bool(getattr(self.config, attr)) for key, attr in FLAG_KEYS.items()}

    def is_feature_enabled(self, key: str) -> bool:
        """Unknown keys are disabled."""
        return self.get_all().get(key, False)
