"""
Chaos experiment lifecycle controller.

Provides ChaosController, which runs one experiment per invocation as a
canary measurement: create, watch until a terminal phase, optionally clean
up, and report the outcome.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from chaos_canary.client import ChaosClient
from chaos_canary.deadline import Deadline
from chaos_canary.exceptions import (
    ChaosCanaryError,
    ConfigValidationError,
    StructureError,
)
from chaos_canary.models.experiment import ExperimentHandle, ExperimentResult
from chaos_canary.models.resources import resolve
from chaos_canary.models.status import Outcome
from chaos_canary.models.template import ExperimentTemplate
from chaos_canary.plugin import PLUGIN_NAME, PluginConfig


ConfigInput = Union[PluginConfig, Mapping[str, Any], str, bytes]


class ChaosController:
    """
    Runs chaos experiments as canary measurements.

    Every controller error in run() ends up in the returned result rather
    than being raised. Anything else raised during the watch (including
    KeyboardInterrupt) propagates after the experiment is cleaned up.
    Cleanup is best effort and never changes the reported outcome.

    Args:
        client: ChaosClient to use (created lazily via client_factory if omitted)
        client_factory: Builds the client on first use
        logger: Logger for lifecycle messages (defaults to module logger)

    Example:
        >>> controller = ChaosController()
        >>> result = controller.run({
        ...     "chaosExperimentCRD": template_yaml,
        ...     "targetReplicaSetLabel": "rollouts-pod-template-hash",
        ...     "targetReplicaSetValue": "abc123",
        ... })
        >>> result.success
        True
    """

    def __init__(
        self,
        client: Optional[ChaosClient] = None,
        client_factory: Optional[Callable[[], ChaosClient]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self._client = client
        self._client_factory = client_factory or (lambda: ChaosClient(logger=self.logger))
        self.logger.debug("ChaosController initialized")

    @property
    def client(self) -> ChaosClient:
        """The cluster client, created on first use."""
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def run(
        self,
        plugin_config: ConfigInput,
        parent: Optional[Deadline] = None
    ) -> ExperimentResult:
        """
        Run one experiment and report its outcome.

        Args:
            plugin_config: Host configuration
            parent: Optional deadline of the enclosing invocation; cancelling
                it cancels the watch

        Returns:
            Successful or Failed result when the experiment finished, Error
            result when no outcome could be reached
        """
        result = ExperimentResult()

        try:
            cfg = PluginConfig.parse(plugin_config)
        except ConfigValidationError as e:
            self.logger.error("Invalid configuration: %s", e)
            return result.mark_error(e)

        selector = cfg.target_selector()
        self.logger.info("Creating chaos experiment with target selector: %s", selector)

        try:
            template = ExperimentTemplate.from_yaml(cfg.chaos_experiment_crd)
            coordinates = resolve(template.kind)
            template.ensure_name()
            template.with_selector(selector)
            handle = self.client.create(coordinates, template.document)
        except ChaosCanaryError as e:
            self.logger.error("Failed to create chaos experiment: %s", e)
            return result.mark_error(e)

        result.record_identity(handle, str(selector))
        self.logger.info(
            "Created chaos experiment: %s/%s (kind: %s)",
            handle.namespace,
            handle.name,
            handle.kind
        )

        with Deadline(cfg.timeout_seconds, parent=parent) as deadline:
            try:
                success = self.client.watch(handle, deadline)
            except ChaosCanaryError as e:
                self.logger.error("Failed to watch chaos experiment: %s", e)
                if cfg.cleanup_on_finish:
                    self._cleanup(handle, "after error")
                return result.mark_error(e)
            except BaseException:
                self.logger.error("Watch of %s aborted unexpectedly", handle)
                if cfg.cleanup_on_finish:
                    self._cleanup(handle, "after unexpected error")
                raise

        if cfg.cleanup_on_finish:
            self._cleanup(handle)

        result.mark_outcome(Outcome(finished=True, success=success))
        if success:
            self.logger.info("Chaos experiment %s completed successfully", handle)
        else:
            self.logger.error("Chaos experiment %s failed", handle)
        return result

    def terminate(
        self,
        plugin_config: ConfigInput,
        result: ExperimentResult
    ) -> ExperimentResult:
        """
        Abort an in-flight measurement by deleting its experiment.

        Missing identity metadata or an invalid configuration makes this a
        no-op. The result is returned unchanged.
        """
        self.logger.info("Terminating chaos experiment measurement")

        try:
            PluginConfig.parse(plugin_config)
        except ConfigValidationError as e:
            self.logger.error("Failed to parse config during termination: %s", e)
            return result

        handle = result.handle
        if handle is None:
            self.logger.debug("No experiment recorded, nothing to terminate")
            return result

        self._cleanup(handle, "during termination")
        return result

    def resume(
        self,
        plugin_config: ConfigInput,
        result: ExperimentResult
    ) -> ExperimentResult:
        """Chaos experiments cannot be paused, so resuming changes nothing."""
        self.logger.debug("Resume called - not implemented for chaos experiments")
        return result

    def get_metadata(self, plugin_config: ConfigInput) -> Dict[str, str]:
        """
        Describe the measurement configuration.

        Returns:
            Plugin name, target label and value, timeout, cleanup flag, and
            the experiment kind when the template parses; an empty dict when
            the configuration is invalid
        """
        try:
            cfg = PluginConfig.parse(plugin_config)
        except ConfigValidationError as e:
            self.logger.error("Failed to parse config for metadata: %s", e)
            return {}

        metadata = {
            "pluginName": PLUGIN_NAME,
            "targetReplicaSetLabel": cfg.target_label,
            "targetReplicaSetValue": cfg.target_value,
            "timeout": cfg.timeout,
            "cleanupOnFinish": "true" if cfg.cleanup_on_finish else "false",
        }

        try:
            metadata["experimentKind"] = ExperimentTemplate.from_yaml(
                cfg.chaos_experiment_crd
            ).kind
        except StructureError as e:
            self.logger.debug("Experiment kind unavailable: %s", e)

        return metadata

    def _cleanup(self, handle: ExperimentHandle, context: str = "") -> bool:
        """Delete the experiment, logging rather than raising on failure."""
        suffix = f" {context}" if context else ""
        try:
            self.client.delete(handle)
        except ChaosCanaryError as e:
            self.logger.warning("Failed to cleanup experiment%s: %s", suffix, e)
            return False

        self.logger.info("Cleaned up chaos experiment%s: %s", suffix, handle)
        return True
