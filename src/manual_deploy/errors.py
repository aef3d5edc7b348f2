"""Exception hierarchy shared by the deployment modules."""


class DeploymentError(Exception):
    """Base class for fatal deployment failures.

    Every module raises its own subclass so callers can either handle a
    specific step or report any failure with a single except clause.
    """

    pass


class DeploymentSkipped(Exception):  # noqa: N818 - control flow signal, not a failure
    """Raised when a deployment is deliberately skipped.

    The message is the human readable skip line, e.g.
    ``DEPLOYMENT SKIPPED (pull request)``.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"DEPLOYMENT SKIPPED ({reason})")


__all__ = ["DeploymentError", "DeploymentSkipped"]
