"""Chaos canary models package initialization."""

from chaos_canary.models.document import Document
from chaos_canary.models.experiment import (
    ExperimentHandle,
    ExperimentResult,
    MeasurementPhase,
)
from chaos_canary.models.resources import (
    CHAOS_KINDS,
    ResourceCoordinates,
    ResourceRegistry,
    registry,
    resolve,
)
from chaos_canary.models.selector import TargetSelector, inject_selector
from chaos_canary.models.status import (
    Condition,
    ExperimentPhase,
    Outcome,
    RawStatus,
    interpret,
)
from chaos_canary.models.template import ExperimentTemplate


__all__ = [
    "Document",
    "ExperimentHandle",
    "ExperimentResult",
    "MeasurementPhase",
    "CHAOS_KINDS",
    "ResourceCoordinates",
    "ResourceRegistry",
    "registry",
    "resolve",
    "TargetSelector",
    "inject_selector",
    "Condition",
    "ExperimentPhase",
    "Outcome",
    "RawStatus",
    "interpret",
    "ExperimentTemplate",
]
