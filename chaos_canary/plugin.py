"""
Host configuration for a chaos canary measurement.

The rollout host hands each invocation a JSON object keyed by PLUGIN_NAME.
PluginConfig validates it before any cluster call is made.
"""

import json
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from chaos_canary.config import config
from chaos_canary.exceptions import ConfigValidationError
from chaos_canary.models.selector import TargetSelector
from chaos_canary.utils import parse_duration


PLUGIN_NAME = "chaos-canary"

# pydantic prepends this to messages raised from validators
_VALUE_ERROR_PREFIX = "Value error, "


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"]
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


class PluginConfig(BaseModel):
    """
    Configuration of one chaos canary measurement.

    Attributes:
        chaos_experiment_crd: YAML of the experiment to run
        target_label: Label key selecting the canary pods
        target_value: Label value selecting the canary pods
        timeout: Watch timeout as duration text (default "5m")
        cleanup_on_finish: Delete the experiment once the watch ends

    Example:
        >>> cfg = PluginConfig.parse({
        ...     "chaosExperimentCRD": "kind: PodChaos ...",
        ...     "targetReplicaSetLabel": "rollouts-pod-template-hash",
        ...     "targetReplicaSetValue": "abc123",
        ...     "timeout": "2m",
        ... })
        >>> cfg.timeout_seconds
        120.0
    """

    chaos_experiment_crd: str = Field(
        default="", alias="chaosExperimentCRD", validate_default=True
    )
    target_label: str = Field(
        default="", alias="targetReplicaSetLabel", validate_default=True
    )
    target_value: str = Field(
        default="", alias="targetReplicaSetValue", validate_default=True
    )
    timeout: Optional[str] = Field(default=None, validate_default=True)
    cleanup_on_finish: bool = Field(default=True, alias="cleanupOnFinish")

    class Config:
        """Pydantic model configuration."""
        populate_by_name = True

    @field_validator('chaos_experiment_crd', 'target_label', 'target_value')
    @classmethod
    def validate_required(cls, v: str, info: ValidationInfo) -> str:
        """Reject missing or blank required fields."""
        if not v or not v.strip():
            alias = cls.model_fields[info.field_name].alias
            raise ValueError(f"{alias} is required")
        return v

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v: Optional[str]) -> str:
        """Default an empty timeout and require a positive duration."""
        if v is None or not v.strip():
            return config.default_timeout

        try:
            seconds = parse_duration(v)
        except ValueError as e:
            raise ValueError(f"invalid timeout format: {e}") from e

        if seconds <= 0:
            raise ValueError(f"timeout must be positive, got {v!r}")
        return v

    @property
    def timeout_seconds(self) -> float:
        return parse_duration(self.timeout)

    def target_selector(self) -> TargetSelector:
        return TargetSelector.from_label(self.target_label, self.target_value)

    @classmethod
    def parse(
        cls,
        raw: Union["PluginConfig", Mapping[str, Any], str, bytes]
    ) -> "PluginConfig":
        """
        Validate a configuration given as a model, a mapping or JSON text.

        Raises:
            ConfigValidationError: If the configuration is invalid
        """
        if isinstance(raw, cls):
            return raw

        try:
            if isinstance(raw, (str, bytes)):
                return cls.model_validate_json(raw)
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigValidationError(
                f"invalid plugin configuration: {_format_validation_error(e)}"
            ) from e

    @classmethod
    def from_provider(cls, plugins: Mapping[str, Any]) -> "PluginConfig":
        """
        Extract and validate this plugin's entry from the host's plugin map.

        Raises:
            ConfigValidationError: If the entry is missing or invalid
        """
        if PLUGIN_NAME not in plugins:
            raise ConfigValidationError(
                f"plugin configuration not found under key '{PLUGIN_NAME}'"
            )

        entry = plugins[PLUGIN_NAME]
        if isinstance(entry, (str, bytes)):
            try:
                entry = json.loads(entry)
            except ValueError as e:
                raise ConfigValidationError(
                    f"failed to unmarshal plugin configuration: {e}"
                ) from e

        if not isinstance(entry, Mapping):
            raise ConfigValidationError(
                f"plugin configuration under '{PLUGIN_NAME}' must be an object"
            )
        return cls.parse(entry)
