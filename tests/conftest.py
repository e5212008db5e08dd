"""Shared fixtures for chaos canary tests."""

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from chaos_canary.client import ChaosClient


POD_KILL_TEMPLATE = """\
apiVersion: chaos-mesh.org/v1alpha1
kind: PodChaos
metadata:
  name: pod-kill-experiment-abc123
  namespace: default
spec:
  action: pod-kill
  mode: one
  selector:
    namespaces:
      - default
  duration: "30s"
"""


def experiment_object(
    phase: Optional[str] = None,
    conditions: Optional[List[Dict[str, Any]]] = None,
    name: str = "pod-kill-experiment-abc123",
) -> Dict[str, Any]:
    """Build a PodChaos object as the API returns it."""
    obj: Dict[str, Any] = {
        "apiVersion": "chaos-mesh.org/v1alpha1",
        "kind": "PodChaos",
        "metadata": {"name": name, "namespace": "default"},
        "spec": {"action": "pod-kill", "mode": "one"},
    }
    if phase is not None:
        obj["status"] = {"experiment": {"phase": phase}}
        if conditions is not None:
            obj["status"]["conditions"] = conditions
    return obj


def event(event_type: str, obj: Any) -> Dict[str, Any]:
    return {"type": event_type, "object": obj}


class FakeWatch:
    """Stands in for kubernetes.watch.Watch, replaying canned events."""

    def __init__(self, events=(), error: Optional[BaseException] = None, on_event=None):
        self.events = list(events)
        self.error = error
        self.on_event = on_event
        self.stopped = False
        self.stream_kwargs: Dict[str, Any] = {}
        self.func = None

    def stream(self, func, **kwargs):
        self.func = func
        self.stream_kwargs = kwargs
        for item in self.events:
            if self.stopped:
                return
            if self.on_event is not None:
                self.on_event(item)
            yield item
        if self.error is not None:
            raise self.error

    def stop(self):
        self.stopped = True


@pytest.fixture
def custom_api():
    """CustomObjectsApi mock whose list call finds nothing yet."""
    api = MagicMock()
    api.list_namespaced_custom_object.return_value = {
        "metadata": {"resourceVersion": "100"},
        "items": [],
    }
    api.create_namespaced_custom_object.side_effect = (
        lambda group, version, namespace, plural, body: body
    )
    return api


@pytest.fixture
def fake_watch():
    return FakeWatch()


@pytest.fixture
def chaos_client(custom_api, fake_watch):
    """ChaosClient wired to the API mock and the fake watch."""
    return ChaosClient(custom_api=custom_api, watch_factory=lambda: fake_watch)
