"""
Target selector model and selector injection.

This module provides the TargetSelector class for the label pairs that pick
the canary's pods, and inject_selector() which writes those pairs into a
generic experiment document.
"""

import logging
from typing import Dict

from pydantic import BaseModel, field_validator

from chaos_canary.exceptions import DocumentTypeError, StructureError
from chaos_canary.models.document import Document


logger = logging.getLogger(__name__)


class TargetSelector(BaseModel):
    """
    Label key/value pairs identifying the instances an experiment affects.

    Must hold at least one pair; keys and values must be non-empty.
    Instances are immutable once built.

    Attributes:
        labels: Label key-value pairs for pod matching

    Examples:
        >>> selector = TargetSelector.from_label(
        ...     "rollouts-pod-template-hash", "abc123"
        ... )
        >>> str(selector)
        'rollouts-pod-template-hash=abc123'
    """

    labels: Dict[str, str]

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @field_validator('labels')
    @classmethod
    def validate_labels(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Reject empty selectors and empty keys or values."""
        if not v:
            raise ValueError("A target selector needs at least one label")

        for key, value in v.items():
            if not key:
                raise ValueError("Target selector label keys must be non-empty")
            if not value:
                raise ValueError(
                    f"Target selector label '{key}' must have a non-empty value"
                )
        return dict(v)

    @classmethod
    def from_label(cls, key: str, value: str) -> "TargetSelector":
        """Convenience constructor for a single label pair."""
        return cls(labels={key: value})

    def to_crd_dict(self) -> Dict[str, str]:
        """Return the pairs in Chaos Mesh ``labelSelectors`` form."""
        return dict(self.labels)

    def __str__(self) -> str:
        """Human-readable selector, e.g. ``app=web,track=canary``."""
        return ",".join(f"{k}={v}" for k, v in self.labels.items())


def inject_selector(document: Document, selector: TargetSelector) -> Document:
    """
    Write the target selector into ``spec.selector.labelSelectors``.

    The existing ``labelSelectors`` map is replaced, not merged. Sibling
    selector fields (namespaces, fieldSelectors, annotationSelectors,
    expressionSelectors, pods) and the rest of the document are left as
    they are. Applying the same selector twice gives the same document.

    Args:
        document: Experiment document, mutated in place
        selector: Target selector to inject

    Returns:
        The same document, for chaining

    Raises:
        StructureError: If ``spec`` is missing, or ``spec`` or
            ``spec.selector`` is not a mapping
    """
    try:
        spec = document.find_map("spec")
        if spec is None:
            raise StructureError("spec not found in experiment")

        chaos_selector = document.find_map("spec", "selector")
    except DocumentTypeError as e:
        raise StructureError(f"Cannot inject selector: {e}") from e

    if chaos_selector is None:
        chaos_selector = {}
        spec["selector"] = chaos_selector

    chaos_selector["labelSelectors"] = selector.to_crd_dict()

    logger.debug("Injected labelSelectors %s", selector)
    return document
