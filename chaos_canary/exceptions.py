"""
Custom exception hierarchy for the chaos canary controller.

Every error carries a ``terminal`` flag. Terminal errors abort the current
lifecycle step and end the invocation as a failed result; non-terminal errors
are logged and the step carries on.
"""


class ChaosCanaryError(Exception):
    """
    Base exception for all chaos canary errors.

    All custom exceptions inherit from this class, allowing callers to catch
    every controller-specific error with a single except clause.
    """

    terminal = True


class ConfigValidationError(ChaosCanaryError):
    """
    Raised when the host-supplied configuration is invalid.

    Wraps pydantic validation failures so callers only deal with this
    package's hierarchy. Raised before any cluster interaction.
    """
    pass


class ChaosMeshConnectionError(ChaosCanaryError):
    """
    Raised when unable to configure access to the Kubernetes API server.

    This typically indicates a missing kubeconfig or in-cluster service
    account.
    """
    pass


class StructureError(ChaosCanaryError):
    """
    Raised when an experiment template is missing a required section.

    A template needs a top-level ``kind``, ``metadata`` and ``spec``.
    Unparseable YAML is reported the same way.
    """
    pass


class DocumentTypeError(ChaosCanaryError):
    """Raised when a document path holds a value of an unexpected type."""

    def __init__(self, path, expected, actual):
        self.path = tuple(path)
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected {expected} at '{'.'.join(str(p) for p in self.path)}', "
            f"got {actual}"
        )


class UnsupportedKindError(ChaosCanaryError):
    """Raised when no resource coordinates are registered for a kind."""
    pass


class CreationError(ChaosCanaryError):
    """
    Raised when the cluster rejects the experiment create call.

    Not retried: a failed create ends the invocation.
    """
    pass


class ExperimentAlreadyExistsError(CreationError):
    """
    Raised when attempting to create an experiment that already exists.

    Corresponds to HTTP 409 Conflict from Kubernetes API.
    The experiment name must be unique within the namespace.
    """
    pass


class WatchError(ChaosCanaryError):
    """Base class for failures while watching an experiment's status."""
    pass


class WatchChannelClosedError(WatchError):
    """
    Raised when the status stream ends before a terminal phase is observed.

    Also raised when the experiment is deleted while still in progress.
    """
    pass


class WatchTimeoutError(WatchError):
    """
    Raised when the watch deadline expires before a terminal phase.

    Common causes:
    - Chaos Mesh controller issues
    - Target pods don't exist
    - The experiment reports a phase this controller does not recognize
    """
    pass


class WatchCancelledError(WatchError):
    """Raised when the watch is cancelled by its invocation or a parent."""
    pass


class WatchStreamError(WatchError):
    """Raised when the API server reports an error on the watch stream."""
    pass


class StatusParseError(ChaosCanaryError):
    """
    Raised when a status update cannot be read as a structured status.

    Not terminal: the watch logs it and waits for the next update.
    """

    terminal = False


class DeletionError(ChaosCanaryError):
    """
    Raised when deleting an experiment fails for a reason other than absence.

    Swallowed (and logged) during best-effort cleanup so it never masks the
    primary outcome.
    """
    pass
