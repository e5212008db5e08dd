"""
Library-wide settings for the chaos canary controller.

One shared ChaosConfig instance (``config``) holds the Chaos Mesh API
coordinates, the defaults applied to host input, and the watch connection
settings. Every setting can be overridden from the environment as
``CHAOS_CANARY_<SETTING>`` (e.g. ``CHAOS_CANARY_DEFAULT_NAMESPACE=canary``),
which is how the controller is usually tuned when deployed next to a rollout
controller.
"""

import logging
from typing import Any, Dict, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ChaosSettings(BaseSettings):
    """
    Settings loaded from ``CHAOS_CANARY_*`` environment variables.

    Attributes:
        api_group: Chaos Mesh API group (default: chaos-mesh.org)
        api_version: Chaos Mesh API version (default: v1alpha1)
        default_namespace: Namespace used when a template names none
        default_timeout: Watch timeout used when the host gives none
        watch_request_grace: Extra seconds the watch socket may stay silent
            past the server-side timeout before the read is abandoned
        kubeconfig_path: Optional path to kubeconfig file
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAOS_CANARY_",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    api_group: str = "chaos-mesh.org"
    api_version: str = "v1alpha1"
    default_namespace: str = "default"
    default_timeout: str = "5m"
    watch_request_grace: float = 10.0
    kubeconfig_path: Optional[str] = None


class ChaosConfig:
    """
    Settings shared by every client and controller in the process.

    Values are plain attributes; ``update`` and ``reset`` validate them
    through ChaosSettings first.
    """

    _instance: Optional["ChaosConfig"] = None

    def __init__(self, **overrides):
        self.reset(**overrides)

    @classmethod
    def get_instance(cls) -> "ChaosConfig":
        """Return the process-wide instance, creating it on first use."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def reset(self, **overrides) -> None:
        """
        Reload defaults and environment, then apply explicit overrides.

        Resets in place so modules holding ``config`` see the new values.

        Raises:
            pydantic.ValidationError: If a value has the wrong type
        """
        self._settings = ChaosSettings(**overrides)
        for key, value in self._settings.model_dump().items():
            setattr(self, key, value)

    def update(self, **kwargs) -> None:
        """
        Update configuration values.

        Raises:
            pydantic.ValidationError: If a value has the wrong type
        """
        for key, value in kwargs.items():
            if key not in ChaosSettings.model_fields:
                logger.warning("Unknown config key: %s", key)
                continue
            setattr(self._settings, key, value)
            setattr(self, key, getattr(self._settings, key))
            logger.info("Updated config: %s=%s", key, value)

    def as_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in ChaosSettings.model_fields}

    def __repr__(self) -> str:
        settings = ", ".join(f"{k}={v!r}" for k, v in self.as_dict().items())
        return f"ChaosConfig({settings})"


# Global configuration instance
config = ChaosConfig.get_instance()
