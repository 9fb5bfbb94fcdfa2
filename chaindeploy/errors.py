class DeploymentError(Exception):
    """Base class for every failure that aborts a deployment run."""


class ConfigurationError(DeploymentError):
    """Raised when the network, its credentials or the params file are missing or invalid."""


class CompileArtifactNotFound(DeploymentError):
    """Raised when a contract reference does not name a known compiled artifact."""


class ArgumentMismatch(DeploymentError):
    """Raised when constructor arguments do not match the artifact's constructor ABI."""


class DeploymentRejected(DeploymentError):
    """Raised when the network reverts or rejects a deployment transaction."""


class ConfirmationTimeout(DeploymentError):
    """Raised when a deployment transaction is not confirmed within the provider's wait."""


class PlanValidationError(DeploymentError):
    """Raised when a plan has duplicate ids or unresolvable step references."""


class PersistenceError(DeploymentError):
    """Raised when the manifest cannot be written."""


class DeploymentAborted(DeploymentError):
    """Raised when the operator declines a confirmation prompt."""
