"""
Structured document tree.

Kubernetes objects arrive as nested dicts, lists and scalars. Document wraps
such a tree with path accessors that return None for absent paths and raise
DocumentTypeError when a present value has the wrong type, so a string where
a mapping was expected never slips through unnoticed.
"""

import copy
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from chaos_canary.exceptions import DocumentTypeError


_MISSING = object()


ExpectedType = Union[Type, Tuple[Type, ...]]


def _type_name(expected: ExpectedType) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


class Document:
    """
    Mutable tree of maps, sequences and scalars with safe nested access.

    Examples:
        >>> doc = Document({"spec": {"selector": {"namespaces": ["default"]}}})
        >>> doc.find_list("spec", "selector", "namespaces")
        ['default']
        >>> doc.find_map("spec", "missing") is None
        True
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DocumentTypeError((), "mapping", type(data).__name__)
        self._data = data

    def _lookup(self, path: Tuple[str, ...]) -> Any:
        node: Any = self._data
        for depth, key in enumerate(path):
            if not isinstance(node, dict):
                raise DocumentTypeError(
                    path[:depth], "mapping", type(node).__name__
                )
            if key not in node or node[key] is None:
                return _MISSING
            node = node[key]
        return node

    def find(self, *path: str, expected: Optional[ExpectedType] = None) -> Optional[Any]:
        """
        Return the value at ``path``, or None when any segment is absent.

        Raises:
            DocumentTypeError: If an intermediate node is not a mapping, or
                the value is not an instance of ``expected``
        """
        value = self._lookup(path)
        if value is _MISSING:
            return None
        if expected is not None and not isinstance(value, expected):
            raise DocumentTypeError(
                path, _type_name(expected), type(value).__name__
            )
        return value

    def find_map(self, *path: str) -> Optional[Dict[str, Any]]:
        return self.find(*path, expected=dict)

    def find_list(self, *path: str) -> Optional[List[Any]]:
        return self.find(*path, expected=list)

    def find_str(self, *path: str) -> Optional[str]:
        return self.find(*path, expected=str)

    def set(self, *path: str, value: Any) -> None:
        """
        Set ``value`` at ``path``, creating missing intermediate mappings.

        Raises:
            DocumentTypeError: If an existing intermediate node is not a mapping
        """
        if not path:
            raise ValueError("set() requires a non-empty path")

        node = self._data
        for depth, key in enumerate(path[:-1]):
            child = node.get(key)
            if child is None:
                child = {}
                node[key] = child
            elif not isinstance(child, dict):
                raise DocumentTypeError(
                    path[:depth + 1], "mapping", type(child).__name__
                )
            node = child
        node[path[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return the underlying tree (not a copy)."""
        return self._data

    def copy(self) -> "Document":
        return Document(copy.deepcopy(self._data))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Document):
            return self._data == other._data
        return NotImplemented

    def __repr__(self) -> str:
        return f"Document({self._data!r})"
