"""
Chaos Canary - Chaos Mesh experiments as canary analysis measurements.

Injects a Chaos Mesh experiment into the canary pods of a rollout, watches it
until it reaches a terminal phase, and reports whether it concluded cleanly
so the rollout can proceed or abort.
"""

from chaos_canary.config import ChaosConfig, ChaosSettings
from chaos_canary.client import ChaosClient
from chaos_canary.controller import ChaosController
from chaos_canary.deadline import Deadline
from chaos_canary.exceptions import (
    ChaosCanaryError,
    ConfigValidationError,
    ChaosMeshConnectionError,
    StructureError,
    DocumentTypeError,
    UnsupportedKindError,
    CreationError,
    ExperimentAlreadyExistsError,
    WatchError,
    WatchChannelClosedError,
    WatchTimeoutError,
    WatchCancelledError,
    WatchStreamError,
    StatusParseError,
    DeletionError,
)
from chaos_canary.models import (
    Document,
    ExperimentHandle,
    ExperimentResult,
    ExperimentTemplate,
    MeasurementPhase,
    Outcome,
    RawStatus,
    ResourceCoordinates,
    TargetSelector,
    inject_selector,
    interpret,
    resolve,
)
from chaos_canary.plugin import PLUGIN_NAME, PluginConfig

__version__ = "0.1.0"
__all__ = [
    # Configuration
    "ChaosConfig",
    "ChaosSettings",
    "PluginConfig",
    "PLUGIN_NAME",
    # Lifecycle
    "ChaosClient",
    "ChaosController",
    "Deadline",
    # Exceptions
    "ChaosCanaryError",
    "ConfigValidationError",
    "ChaosMeshConnectionError",
    "StructureError",
    "DocumentTypeError",
    "UnsupportedKindError",
    "CreationError",
    "ExperimentAlreadyExistsError",
    "WatchError",
    "WatchChannelClosedError",
    "WatchTimeoutError",
    "WatchCancelledError",
    "WatchStreamError",
    "StatusParseError",
    "DeletionError",
    # Models
    "Document",
    "ExperimentHandle",
    "ExperimentResult",
    "ExperimentTemplate",
    "MeasurementPhase",
    "Outcome",
    "RawStatus",
    "ResourceCoordinates",
    "TargetSelector",
    "inject_selector",
    "interpret",
    "resolve",
]
