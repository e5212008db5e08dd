"""
Kubernetes API client for the Chaos Mesh experiment lifecycle.

This module wraps the Kubernetes custom-objects API with the three calls the
controller needs: create an experiment, watch it until it reaches a terminal
phase, and delete it. API and transport failures are translated into this
package's exceptions.
"""

import logging
import math
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from kubernetes import client, config as k8s_config, watch
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as TransportError

from chaos_canary.config import config
from chaos_canary.deadline import Deadline
from chaos_canary.exceptions import (
    ChaosMeshConnectionError,
    CreationError,
    DeletionError,
    DocumentTypeError,
    ExperimentAlreadyExistsError,
    StatusParseError,
    WatchCancelledError,
    WatchChannelClosedError,
    WatchStreamError,
    WatchTimeoutError,
)
from chaos_canary.models.document import Document
from chaos_canary.models.experiment import ExperimentHandle
from chaos_canary.models.resources import ResourceCoordinates, resolve
from chaos_canary.models.status import Outcome, RawStatus, interpret


DATA_EVENTS = frozenset({"ADDED", "MODIFIED", "DELETED"})


def _describe(exception: Exception) -> str:
    if isinstance(exception, ApiException):
        return f"HTTP {exception.status} - {exception.reason}"
    return str(exception)


class ChaosClient:
    """
    Kubernetes API client for Chaos Mesh experiments.

    Handles smart authentication (in-cluster + kubeconfig fallback) and error
    translation. Holds no per-experiment state, so one instance can serve
    concurrent invocations watching different experiments.
    """

    def __init__(
        self,
        kubeconfig_path: Optional[str] = None,
        custom_api: Optional[Any] = None,
        watch_factory=watch.Watch,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize client with smart authentication.

        Args:
            kubeconfig_path: Optional explicit kubeconfig path
            custom_api: Pre-built CustomObjectsApi; skips authentication
            watch_factory: Callable returning a kubernetes ``watch.Watch``
            logger: Logger for lifecycle messages (defaults to module logger)
        """
        self.logger = logger or logging.getLogger(__name__)

        if custom_api is None:
            self._setup_kubernetes_client(kubeconfig_path)
            custom_api = client.CustomObjectsApi()

        self.custom_api = custom_api
        self._watch_factory = watch_factory
        self.logger.debug(
            "ChaosClient initialized for %s/%s", config.api_group, config.api_version
        )

    def _setup_kubernetes_client(self, kubeconfig_path: Optional[str]) -> None:
        """
        Set up Kubernetes client with smart authentication.

        Args:
            kubeconfig_path: Optional explicit kubeconfig path

        Raises:
            ChaosMeshConnectionError: If all auth methods fail
        """
        kube_path = kubeconfig_path or config.kubeconfig_path

        # Try in-cluster config first
        try:
            k8s_config.load_incluster_config()
            self.logger.info("Loaded in-cluster Kubernetes configuration")
            return
        except k8s_config.ConfigException:
            self.logger.debug("In-cluster config not available, trying kubeconfig")

        # Fall back to kubeconfig
        try:
            k8s_config.load_kube_config(config_file=kube_path)
            self.logger.info(
                "Loaded kubeconfig from %s",
                kube_path or "default location"
            )
        except Exception as e:
            raise ChaosMeshConnectionError(
                f"Failed to load Kubernetes configuration: {e}. "
                "Ensure you're running inside a cluster or have a valid kubeconfig."
            ) from e

    def create(
        self,
        coordinates: ResourceCoordinates,
        document: Union[Document, Dict[str, Any]]
    ) -> ExperimentHandle:
        """
        Create a Chaos Mesh experiment.

        Args:
            coordinates: API coordinates of the experiment kind
            document: Complete experiment definition

        Returns:
            Handle of the created experiment

        Raises:
            ExperimentAlreadyExistsError: If an experiment with the same name exists
            CreationError: If the API rejects the call or the transport fails
        """
        if not isinstance(document, Document):
            document = Document(document)

        try:
            kind = document.find_str("kind") or ""
            name = (document.find_str("metadata", "name")
                    or document.find_str("metadata", "generateName") or "")
            namespace = (document.find_str("metadata", "namespace")
                         or config.default_namespace)
        except DocumentTypeError as e:
            raise CreationError(f"failed to create experiment: {e}") from e

        self.logger.info("Creating Chaos Mesh experiment: %s/%s", namespace, name)

        try:
            response = self.custom_api.create_namespaced_custom_object(
                group=coordinates.group,
                version=coordinates.version,
                namespace=namespace,
                plural=coordinates.resource,
                body=document.to_dict(),
            )
        except ApiException as e:
            if e.status == 409:
                raise ExperimentAlreadyExistsError(
                    f"{kind}/{name} already exists in namespace {namespace}"
                ) from e
            raise CreationError(
                f"failed to create experiment {kind}/{name}: {_describe(e)}"
            ) from e
        except TransportError as e:
            raise CreationError(
                f"failed to create experiment {kind}/{name}: {_describe(e)}"
            ) from e

        created = response if isinstance(response, Mapping) else {}
        metadata = created.get("metadata") or {}
        handle = ExperimentHandle(
            namespace=metadata.get("namespace") or namespace,
            name=metadata.get("name") or name,
            kind=created.get("kind") or kind,
        )

        self.logger.info("Created %s", handle)
        return handle

    def watch(self, handle: ExperimentHandle, deadline: Deadline) -> bool:
        """
        Block until the experiment reaches a terminal phase.

        Lists the experiment to read its current status, then follows a
        watch stream filtered to its name. Updates that cannot be read as a
        status are logged and skipped.

        Args:
            handle: Experiment to watch
            deadline: Bounds the wait; cancelling it stops the watch

        Returns:
            True if the experiment finished successfully, False if it
            finished but failed

        Raises:
            UnsupportedKindError: If the handle's kind is not registered
            WatchTimeoutError: If the deadline expires first
            WatchCancelledError: If the deadline is cancelled first
            WatchChannelClosedError: If the stream ends, or the experiment is
                deleted, before a terminal phase
            WatchStreamError: If the API reports an error on the stream
        """
        coordinates = resolve(handle.kind)
        field_selector = f"metadata.name={handle.name}"

        self.logger.info(
            "Watching Chaos Mesh experiment: %s/%s (timeout: %.0fs)",
            handle.namespace,
            handle.name,
            deadline.remaining()
        )

        self._raise_if_done(handle, deadline)
        snapshot = self._list_experiment(coordinates, handle, field_selector)

        for item in snapshot.get("items") or []:
            outcome = self._evaluate(handle, item)
            if outcome is not None and outcome.finished:
                return self._finish(handle, outcome)

        resource_version = (snapshot.get("metadata") or {}).get("resourceVersion")

        self._raise_if_done(handle, deadline)
        watcher = self._watch_factory()
        deadline.add_callback(watcher.stop)
        stream = self._open_stream(
            watcher, coordinates, handle, field_selector, resource_version, deadline
        )

        try:
            for event in stream:
                self._raise_if_done(handle, deadline)

                event_type = event.get("type")
                if event_type == "ERROR":
                    raise WatchStreamError(
                        f"watch error for {handle}: {event.get('object')}"
                    )
                if event_type not in DATA_EVENTS:
                    self.logger.debug("Ignoring %s event for %s", event_type, handle)
                    continue

                outcome = self._evaluate(handle, event.get("object"))
                if outcome is not None and outcome.finished:
                    return self._finish(handle, outcome)

                if event_type == "DELETED":
                    raise WatchChannelClosedError(
                        f"{handle} was deleted before reaching a terminal phase"
                    )

        except ApiException as e:
            raise WatchStreamError(f"watch error for {handle}: {_describe(e)}") from e
        except TransportError as e:
            self._raise_if_done(handle, deadline)
            raise WatchChannelClosedError(
                f"watch channel for {handle} broke: {_describe(e)}"
            ) from e
        finally:
            deadline.remove_callback(watcher.stop)
            watcher.stop()
            close = getattr(stream, "close", None)
            if close is not None:
                close()

        self._raise_if_done(handle, deadline)
        raise WatchChannelClosedError(f"watch channel for {handle} closed unexpectedly")

    def delete(self, handle: ExperimentHandle) -> None:
        """
        Delete a Chaos Mesh experiment.

        Deleting an experiment that no longer exists succeeds.

        Raises:
            UnsupportedKindError: If the handle's kind is not registered
            DeletionError: If the API call fails for any other reason
        """
        coordinates = resolve(handle.kind)

        self.logger.info(
            "Deleting Chaos Mesh experiment: %s/%s", handle.namespace, handle.name
        )

        try:
            self.custom_api.delete_namespaced_custom_object(
                group=coordinates.group,
                version=coordinates.version,
                namespace=handle.namespace,
                plural=coordinates.resource,
                name=handle.name,
            )
        except ApiException as e:
            if e.status == 404:
                # Idempotent delete: already gone is success
                self.logger.warning(
                    "%s not found, possibly already deleted", handle
                )
                return
            raise DeletionError(
                f"failed to delete experiment {handle}: {_describe(e)}"
            ) from e
        except TransportError as e:
            raise DeletionError(
                f"failed to delete experiment {handle}: {_describe(e)}"
            ) from e

        self.logger.info("Deleted %s", handle)

    def _list_experiment(
            self,
            coordinates: ResourceCoordinates,
            handle: ExperimentHandle,
            field_selector: str
    ) -> Dict[str, Any]:
        """List the experiment by name to read its current status."""
        try:
            response = self.custom_api.list_namespaced_custom_object(
                group=coordinates.group,
                version=coordinates.version,
                namespace=handle.namespace,
                plural=coordinates.resource,
                field_selector=field_selector,
            )
        except (ApiException, TransportError) as e:
            raise WatchStreamError(
                f"failed to start watching {handle}: {_describe(e)}"
            ) from e

        return response if isinstance(response, Mapping) else {}

    def _open_stream(
            self,
            watcher,
            coordinates: ResourceCoordinates,
            handle: ExperimentHandle,
            field_selector: str,
            resource_version: Optional[str],
            deadline: Deadline
    ) -> Iterator[Dict[str, Any]]:
        remaining = deadline.remaining()
        kwargs = {
            "group": coordinates.group,
            "version": coordinates.version,
            "namespace": handle.namespace,
            "plural": coordinates.resource,
            "field_selector": field_selector,
            "timeout_seconds": max(1, math.ceil(remaining)),
            "_request_timeout": remaining + config.watch_request_grace,
        }
        if resource_version:
            kwargs["resource_version"] = resource_version

        return watcher.stream(self.custom_api.list_namespaced_custom_object, **kwargs)

    def _evaluate(self, handle: ExperimentHandle, obj: Any) -> Optional[Outcome]:
        try:
            status = RawStatus.from_object(obj)
        except StatusParseError as e:
            self.logger.warning("Error checking status of %s: %s", handle, e)
            return None
        return interpret(status)

    def _finish(self, handle: ExperimentHandle, outcome: Outcome) -> bool:
        self.logger.info(
            "Experiment %s/%s finished with success=%s",
            handle.namespace,
            handle.name,
            outcome.success
        )
        return outcome.success

    @staticmethod
    def _raise_if_done(handle: ExperimentHandle, deadline: Deadline) -> None:
        if deadline.cancelled:
            raise WatchCancelledError(f"watch of {handle} was cancelled")
        if deadline.expired:
            raise WatchTimeoutError(
                f"timeout waiting for experiment {handle} to complete "
                f"after {deadline.timeout:.0f}s"
            )
