"""Tests for the document tree accessors."""

import pytest

from chaos_canary.exceptions import DocumentTypeError
from chaos_canary.models.document import Document


@pytest.fixture
def doc():
    return Document({
        "kind": "PodChaos",
        "metadata": {"name": "x", "labels": None},
        "spec": {"selector": {"namespaces": ["default"]}},
    })


def test_find_returns_nested_values(doc):
    assert doc.find_str("kind") == "PodChaos"
    assert doc.find_list("spec", "selector", "namespaces") == ["default"]


def test_absent_and_null_paths_return_none(doc):
    assert doc.find("status") is None
    assert doc.find_map("spec", "selector", "labelSelectors") is None
    assert doc.find_map("metadata", "labels") is None


def test_wrong_leaf_type_raises(doc):
    with pytest.raises(DocumentTypeError) as excinfo:
        doc.find_map("kind")

    assert excinfo.value.path == ("kind",)


def test_non_mapping_intermediate_raises(doc):
    with pytest.raises(DocumentTypeError):
        doc.find("kind", "name")


def test_set_creates_intermediate_mappings(doc):
    doc.set("status", "experiment", "phase", value="Running")

    assert doc.find_str("status", "experiment", "phase") == "Running"


def test_set_refuses_to_replace_scalars(doc):
    with pytest.raises(DocumentTypeError):
        doc.set("kind", "name", value="x")


def test_copy_is_deep(doc):
    clone = doc.copy()
    clone.set("spec", "selector", "namespaces", value=["prod"])

    assert doc.find_list("spec", "selector", "namespaces") == ["default"]
    assert clone != doc


def test_rejects_non_mapping_root():
    with pytest.raises(DocumentTypeError):
        Document(["not", "a", "mapping"])
