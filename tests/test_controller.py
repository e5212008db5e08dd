"""Tests for the experiment lifecycle controller."""

from unittest.mock import MagicMock

import pytest
from kubernetes.client.rest import ApiException

from chaos_canary.client import ChaosClient
from chaos_canary.controller import ChaosController
from chaos_canary.deadline import Deadline
from chaos_canary.models.experiment import ExperimentResult, MeasurementPhase
from chaos_canary.plugin import PLUGIN_NAME

from conftest import POD_KILL_TEMPLATE, FakeWatch, event, experiment_object


FINISHED_OK = experiment_object("Finished", conditions=[
    {"type": "AllInjected", "status": "True"},
    {"type": "AllRecovered", "status": "True"},
])


def plugin_config(**overrides):
    raw = {
        "chaosExperimentCRD": POD_KILL_TEMPLATE,
        "targetReplicaSetLabel": "rollouts-pod-template-hash",
        "targetReplicaSetValue": "abc123",
        "timeout": "5m",
        "cleanupOnFinish": True,
    }
    raw.update(overrides)
    return raw


def finishes_with(custom_api, obj):
    custom_api.list_namespaced_custom_object.return_value = {
        "metadata": {"resourceVersion": "100"},
        "items": [obj],
    }


@pytest.fixture
def controller(chaos_client):
    return ChaosController(client=chaos_client)


class TestRun:

    def test_successful_experiment(self, controller, custom_api):
        finishes_with(custom_api, FINISHED_OK)

        result = controller.run(plugin_config())

        assert result.phase == MeasurementPhase.SUCCESSFUL
        assert result.success
        assert result.value == "1"
        assert result.finished_at is not None
        assert result.metadata == {
            "experimentName": "pod-kill-experiment-abc123",
            "experimentNamespace": "default",
            "experimentKind": "PodChaos",
            "targetSelector": "rollouts-pod-template-hash=abc123",
        }

    def test_injects_target_selector_into_created_experiment(self, controller, custom_api):
        finishes_with(custom_api, FINISHED_OK)

        controller.run(plugin_config())

        body = custom_api.create_namespaced_custom_object.call_args.kwargs["body"]
        assert body["spec"]["selector"] == {
            "namespaces": ["default"],
            "labelSelectors": {"rollouts-pod-template-hash": "abc123"},
        }
        assert body["spec"]["duration"] == "30s"

    def test_failed_experiment(self, controller, custom_api):
        finishes_with(custom_api, experiment_object("Failed"))

        result = controller.run(plugin_config())

        assert result.phase == MeasurementPhase.FAILED
        assert result.value == "0"
        assert result.metadata["experimentName"] == "pod-kill-experiment-abc123"

    def test_outcome_reached_through_watch_events(self, custom_api):
        watcher = FakeWatch([
            event("MODIFIED", experiment_object("Running")),
            event("MODIFIED", FINISHED_OK),
        ])
        controller = ChaosController(client=ChaosClient(
            custom_api=custom_api, watch_factory=lambda: watcher
        ))

        assert controller.run(plugin_config()).success

    def test_cleans_up_when_enabled(self, controller, custom_api):
        finishes_with(custom_api, FINISHED_OK)

        controller.run(plugin_config())

        custom_api.delete_namespaced_custom_object.assert_called_once()
        assert custom_api.delete_namespaced_custom_object.call_args.kwargs[
            "name"] == "pod-kill-experiment-abc123"

    def test_leaves_experiment_when_cleanup_disabled(self, controller, custom_api):
        finishes_with(custom_api, FINISHED_OK)

        result = controller.run(plugin_config(cleanupOnFinish=False))

        assert result.success
        custom_api.delete_namespaced_custom_object.assert_not_called()

    def test_cleanup_failure_keeps_outcome(self, controller, custom_api):
        finishes_with(custom_api, FINISHED_OK)
        custom_api.delete_namespaced_custom_object.side_effect = ApiException(
            status=500, reason="Internal Server Error"
        )

        result = controller.run(plugin_config())

        assert result.phase == MeasurementPhase.SUCCESSFUL

    def test_timeout_reports_error_and_cleans_up(self, controller, custom_api):
        result = controller.run(plugin_config(), parent=Deadline(0))

        assert result.phase == MeasurementPhase.ERROR
        assert result.value is None
        assert "timeout" in result.message
        assert result.metadata["experimentName"] == "pod-kill-experiment-abc123"
        custom_api.delete_namespaced_custom_object.assert_called_once()

    def test_cancelled_invocation_reports_error(self, controller, custom_api):
        parent = Deadline(600)
        parent.cancel()

        result = controller.run(plugin_config(), parent=parent)

        assert result.phase == MeasurementPhase.ERROR
        assert "cancelled" in result.message

    def test_finished_runs_detach_from_parent_deadline(self, controller, custom_api):
        finishes_with(custom_api, FINISHED_OK)
        parent = Deadline(3600)

        for _ in range(20):
            controller.run(plugin_config(), parent=parent)

        assert parent._callbacks == []

    @pytest.mark.parametrize("error", [RuntimeError("boom"), KeyboardInterrupt()])
    def test_unexpected_watch_error_still_cleans_up(self, chaos_client, custom_api, error):
        chaos_client.watch = MagicMock(side_effect=error)
        controller = ChaosController(client=chaos_client)

        with pytest.raises(type(error)):
            controller.run(plugin_config())

        custom_api.delete_namespaced_custom_object.assert_called_once()

    def test_unexpected_watch_error_respects_cleanup_flag(self, chaos_client, custom_api):
        chaos_client.watch = MagicMock(side_effect=RuntimeError("boom"))
        controller = ChaosController(client=chaos_client)

        with pytest.raises(RuntimeError):
            controller.run(plugin_config(cleanupOnFinish=False))

        custom_api.delete_namespaced_custom_object.assert_not_called()

    def test_closed_stream_reports_error_without_cleanup_when_disabled(
        self, controller, custom_api
    ):
        result = controller.run(plugin_config(cleanupOnFinish=False))

        assert result.phase == MeasurementPhase.ERROR
        custom_api.delete_namespaced_custom_object.assert_not_called()

    def test_invalid_config_never_reaches_cluster(self):
        factory = MagicMock()
        controller = ChaosController(client_factory=factory)

        result = controller.run(plugin_config(targetReplicaSetLabel=""))

        assert result.phase == MeasurementPhase.ERROR
        assert "targetReplicaSetLabel" in result.message
        factory.assert_not_called()

    def test_unsupported_kind(self, controller, custom_api):
        crd = POD_KILL_TEMPLATE.replace("PodChaos", "UnsupportedChaos")

        result = controller.run(plugin_config(chaosExperimentCRD=crd))

        assert result.phase == MeasurementPhase.ERROR
        assert "UnsupportedChaos" in result.message
        custom_api.create_namespaced_custom_object.assert_not_called()

    def test_malformed_template(self, controller, custom_api):
        result = controller.run(plugin_config(chaosExperimentCRD="kind: PodChaos\n"))

        assert result.phase == MeasurementPhase.ERROR
        custom_api.create_namespaced_custom_object.assert_not_called()

    def test_name_collision(self, controller, custom_api):
        custom_api.create_namespaced_custom_object.side_effect = ApiException(
            status=409, reason="Conflict"
        )

        result = controller.run(plugin_config())

        assert result.phase == MeasurementPhase.ERROR
        assert "already exists" in result.message
        assert "experimentName" not in result.metadata


class TestTerminate:

    def recorded_result(self):
        return ExperimentResult(metadata={
            "experimentName": "pod-kill-experiment-abc123",
            "experimentNamespace": "default",
            "experimentKind": "PodChaos",
        })

    def test_deletes_recorded_experiment(self, controller, custom_api):
        result = self.recorded_result()

        assert controller.terminate(plugin_config(), result) is result
        custom_api.delete_namespaced_custom_object.assert_called_once_with(
            group="chaos-mesh.org",
            version="v1alpha1",
            namespace="default",
            plural="podchaos",
            name="pod-kill-experiment-abc123",
        )

    def test_without_recorded_experiment_is_noop(self, controller, custom_api):
        controller.terminate(plugin_config(), ExperimentResult())

        custom_api.delete_namespaced_custom_object.assert_not_called()

    def test_invalid_config_is_noop(self, controller, custom_api):
        controller.terminate({}, self.recorded_result())

        custom_api.delete_namespaced_custom_object.assert_not_called()

    def test_delete_failure_is_swallowed(self, controller, custom_api):
        custom_api.delete_namespaced_custom_object.side_effect = ApiException(
            status=403, reason="Forbidden"
        )
        result = self.recorded_result()

        assert controller.terminate(plugin_config(), result) is result


def test_resume_returns_result_unchanged(controller, custom_api):
    result = ExperimentResult()

    assert controller.resume(plugin_config(), result) is result
    assert custom_api.method_calls == []


def test_get_metadata(controller):
    assert controller.get_metadata(plugin_config(cleanupOnFinish=False)) == {
        "pluginName": PLUGIN_NAME,
        "targetReplicaSetLabel": "rollouts-pod-template-hash",
        "targetReplicaSetValue": "abc123",
        "timeout": "5m",
        "cleanupOnFinish": "false",
        "experimentKind": "PodChaos",
    }


def test_get_metadata_with_invalid_config(controller):
    assert controller.get_metadata({"targetReplicaSetLabel": "x"}) == {}
