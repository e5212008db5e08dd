"""
Experiment identity and result records.

ExperimentHandle names one created experiment for later watch and delete
calls. ExperimentResult is the report handed back to the host at the end of
an invocation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field

from chaos_canary.models.status import Outcome


class ExperimentHandle(BaseModel):
    """
    Identity of one created experiment.

    Attributes:
        namespace: Namespace the experiment lives in
        name: Experiment name
        kind: Chaos Mesh kind (e.g. "PodChaos")
    """

    namespace: str
    name: str
    kind: str

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, str]) -> Optional["ExperimentHandle"]:
        """
        Rebuild a handle from result metadata.

        Returns:
            The handle, or None when no experiment name was recorded
        """
        name = metadata.get("experimentName")
        if not name:
            return None
        return cls(
            namespace=metadata.get("experimentNamespace", ""),
            name=name,
            kind=metadata.get("experimentKind", ""),
        )

    def to_metadata(self) -> Dict[str, str]:
        return {
            "experimentName": self.name,
            "experimentNamespace": self.namespace,
            "experimentKind": self.kind,
        }

    def __str__(self) -> str:
        return f"{self.kind} {self.namespace}/{self.name}"


class MeasurementPhase(str, Enum):
    """
    Final phase of an invocation as reported to the host.

    Attributes:
        SUCCESSFUL: Experiment finished and every required condition held
        FAILED: Experiment finished but failed
        ERROR: The invocation could not reach an outcome
    """

    SUCCESSFUL = "Successful"
    FAILED = "Failed"
    ERROR = "Error"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ExperimentResult(BaseModel):
    """
    Report of one invocation.

    Attributes:
        phase: Successful, Failed or Error
        value: "1" on success, "0" on failure, None on error
        message: Reason for an Error result
        metadata: Experiment identity and the target selector
        outcome: Interpreted outcome, when one was reached
        started_at: When the invocation started
        finished_at: When the invocation reached a phase
    """

    phase: Optional[MeasurementPhase] = None
    value: Optional[str] = None
    message: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    outcome: Optional[Outcome] = None
    started_at: datetime = Field(default_factory=_now)
    finished_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.phase == MeasurementPhase.SUCCESSFUL

    @property
    def handle(self) -> Optional[ExperimentHandle]:
        return ExperimentHandle.from_metadata(self.metadata)

    def record_identity(self, handle: ExperimentHandle, target_selector: str) -> None:
        self.metadata.update(handle.to_metadata())
        self.metadata["targetSelector"] = target_selector

    def mark_outcome(self, outcome: Outcome) -> "ExperimentResult":
        self.outcome = outcome
        self.finished_at = _now()
        if outcome.success:
            self.phase = MeasurementPhase.SUCCESSFUL
            self.value = "1"
        else:
            self.phase = MeasurementPhase.FAILED
            self.value = "0"
        return self

    def mark_error(self, error: Exception) -> "ExperimentResult":
        self.phase = MeasurementPhase.ERROR
        self.message = str(error)
        self.finished_at = _now()
        return self

    def __str__(self) -> str:
        phase = self.phase.value if self.phase else "Pending"
        if self.message:
            return f"{phase}: {self.message}"
        return phase
