"""
Experiment template parsing.

A template is the YAML of one Chaos Mesh resource. Only ``kind``,
``metadata`` and ``spec.selector`` are read; the kind-specific spec fields
pass through untouched.
"""

import logging
from typing import Any, Dict, Optional

import yaml

from chaos_canary.exceptions import DocumentTypeError, StructureError
from chaos_canary.models.document import Document
from chaos_canary.models.selector import TargetSelector, inject_selector
from chaos_canary.utils import generate_unique_name


logger = logging.getLogger(__name__)


class ExperimentTemplate:
    """
    Parsed experiment document with structural checks.

    Examples:
        >>> template = ExperimentTemplate.from_yaml(
        ...     "kind: PodChaos\\n"
        ...     "metadata: {name: kill-canary}\\n"
        ...     "spec: {action: pod-kill, mode: one}\\n"
        ... )
        >>> template.kind
        'PodChaos'
    """

    def __init__(self, document: Document):
        self.document = document
        self._validate_structure()

    @classmethod
    def from_yaml(cls, text: str) -> "ExperimentTemplate":
        """
        Parse template text.

        Raises:
            StructureError: If the text is not YAML, not a mapping, or lacks
                ``kind``, ``metadata`` or ``spec``
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise StructureError(f"failed to parse experiment YAML: {e}") from e

        if not isinstance(data, dict):
            raise StructureError(
                "experiment YAML must describe a single resource mapping"
            )

        return cls(Document(data))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExperimentTemplate":
        return cls(Document(data))

    def _validate_structure(self) -> None:
        try:
            kind = self.document.find_str("kind")
            metadata = self.document.find_map("metadata")
            spec = self.document.find_map("spec")
        except DocumentTypeError as e:
            raise StructureError(f"Malformed experiment template: {e}") from e

        if not kind:
            raise StructureError("kind not found in experiment")
        if metadata is None:
            raise StructureError("metadata not found in experiment")
        if spec is None:
            raise StructureError("spec not found in experiment")

    @property
    def kind(self) -> str:
        return self.document.find_str("kind")

    @property
    def name(self) -> Optional[str]:
        return self.document.find_str("metadata", "name")

    @property
    def namespace(self) -> Optional[str]:
        return self.document.find_str("metadata", "namespace")

    def ensure_name(self) -> str:
        """
        Give the experiment a unique name if the template has none.

        A template with ``metadata.generateName`` is left for the API server
        to name.

        Returns:
            The experiment name, or the generateName prefix
        """
        name = self.name
        if name:
            return name

        prefix = self.document.find_str("metadata", "generateName")
        if prefix:
            return prefix

        name = generate_unique_name(self.kind.lower())
        self.document.set("metadata", "name", value=name)
        logger.debug("Auto-generated experiment name: %s", name)
        return name

    def with_selector(self, selector: TargetSelector) -> "ExperimentTemplate":
        """Inject ``selector`` into the template and return it."""
        inject_selector(self.document, selector)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.document.to_dict()

    def __str__(self) -> str:
        return f"{self.kind}(name={self.name}, namespace={self.namespace})"
