"""
Experiment status model and interpretation.

Chaos Mesh reports progress through ``status.experiment.phase`` and a list of
``status.conditions``. interpret() turns one snapshot of that status into an
Outcome: whether the experiment has finished, and whether it succeeded.
"""

import logging
from enum import Enum
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from chaos_canary.exceptions import DocumentTypeError, StatusParseError
from chaos_canary.models.document import Document


logger = logging.getLogger(__name__)


class ExperimentPhase(str, Enum):
    """
    Experiment phases this controller acts on.

    Other phase strings may appear; they are treated as in progress.
    """

    RUNNING = "Running"
    FINISHED = "Finished"
    FAILED = "Failed"
    ERROR = "Error"


TERMINAL_FAILURE_PHASES = frozenset({ExperimentPhase.FAILED, ExperimentPhase.ERROR})

# A finished experiment fails if any of these conditions is not "True"
REQUIRED_CONDITIONS = frozenset({"AllInjected", "AllRecovered"})


class Condition(BaseModel):
    """A named sub-status such as AllInjected, valued True/False/Unknown."""

    type: str
    status: str
    reason: Optional[str] = None
    message: Optional[str] = None


class RawStatus(BaseModel):
    """
    Snapshot of an experiment's ``status`` subtree.

    Attributes:
        present: Whether the object carried a ``status.experiment`` section
        phase: Current experiment phase, if reported
        desired_phase: Phase the controller is driving towards
        message: Controller message for the experiment
        conditions: Conditions in the order they were reported
    """

    present: bool = False
    phase: Optional[str] = None
    desired_phase: Optional[str] = None
    message: Optional[str] = None
    conditions: List[Condition] = Field(default_factory=list)

    @classmethod
    def from_object(cls, obj: Any) -> "RawStatus":
        """
        Extract the status of a Kubernetes object.

        Condition entries that are not mappings or lack a string type or
        status are skipped.

        Raises:
            StatusParseError: If the object is not a mapping, or ``status``,
                ``status.experiment``, the phase or ``status.conditions`` has
                the wrong type
        """
        if not isinstance(obj, Mapping):
            raise StatusParseError(
                f"Expected a structured object, got {type(obj).__name__}"
            )

        doc = Document(dict(obj))
        try:
            experiment = doc.find_map("status", "experiment")
            raw_conditions = doc.find_list("status", "conditions") or []
            if experiment is None:
                phase = desired_phase = message = None
            else:
                phase = doc.find_str("status", "experiment", "phase")
                desired_phase = doc.find_str("status", "experiment", "desiredPhase")
                message = doc.find_str("status", "experiment", "message")
        except DocumentTypeError as e:
            raise StatusParseError(f"Malformed experiment status: {e}") from e

        conditions = []
        for entry in raw_conditions:
            try:
                conditions.append(Condition.model_validate(entry))
            except ValidationError:
                logger.debug("Skipping unreadable condition: %r", entry)

        return cls(
            present=experiment is not None,
            phase=phase,
            desired_phase=desired_phase,
            message=message,
            conditions=conditions,
        )


class Outcome(BaseModel):
    """
    Interpretation of one status snapshot.

    Attributes:
        finished: The experiment reached a terminal phase
        success: The experiment finished cleanly (implies finished)
    """

    finished: bool
    success: bool

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @model_validator(mode='after')
    def validate_success_implies_finished(self) -> "Outcome":
        if self.success and not self.finished:
            raise ValueError("An unfinished experiment cannot be successful")
        return self


IN_PROGRESS = Outcome(finished=False, success=False)


def _first_disqualifier(conditions: List[Condition]) -> Optional[Condition]:
    for condition in conditions:
        if condition.type in REQUIRED_CONDITIONS and condition.status != "True":
            return condition
    return None


def interpret(status: RawStatus) -> Outcome:
    """
    Decide whether an experiment has finished and whether it succeeded.

    | phase              | finished | success                          |
    |--------------------|----------|----------------------------------|
    | absent             | False    | False                            |
    | Running            | False    | False                            |
    | Finished           | True     | no failing required condition    |
    | Failed / Error     | True     | False                            |
    | anything else      | False    | False                            |

    Unknown phases are deliberately treated as in progress; only the
    watch deadline bounds them.
    """
    if not status.present or status.phase is None:
        return IN_PROGRESS

    phase = status.phase
    logger.debug("Experiment phase: %s", phase)

    if phase == ExperimentPhase.FINISHED.value:
        disqualifier = _first_disqualifier(status.conditions)
        if disqualifier is not None:
            logger.debug(
                "Condition %s=%s (%s) marks experiment as failed",
                disqualifier.type,
                disqualifier.status,
                disqualifier.reason or "no reason",
            )
            return Outcome(finished=True, success=False)
        return Outcome(finished=True, success=True)

    if phase in {p.value for p in TERMINAL_FAILURE_PHASES}:
        return Outcome(finished=True, success=False)

    return IN_PROGRESS
