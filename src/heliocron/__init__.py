__version__ = "1.0.0"

__all__ = [
    "__version__",
    # Settings
    "Settings",
    "load_settings",
    "Account",
    # Chain
    "ChainClient",
    "ChainEndpoint",
    "ContractArtifact",
    "FeeData",
    "OutcomeStatus",
    "Receipt",
    "SubmissionResult",
    "TransactionOutcome",
    "TransactionRequest",
    "load_artifact",
    # Submission
    "DeploymentVerifier",
    "FeeEstimator",
    "JobSpec",
    "NonceCoordinator",
    "TransactionSubmitter",
    "VerificationReport",
    "build_job_spec",
    "check_sufficient_balance",
    "compute_expiration_block",
    "estimate_required_funds",
    "run_with_retry",
    # Record
    "DeploymentRecord",
    "write_deployment_record",
    # Errors
    "ChainError",
    "ConfigurationError",
    "HeliocronError",
    "InsufficientBalanceError",
    "NetworkError",
    "NonceConflictError",
    "ReceiptTimeoutError",
    "RetriesExhaustedError",
    "RpcError",
    "TransactionFailedError",
    "VerificationError",
]

from .errors import (
    ChainError,
    ConfigurationError,
    HeliocronError,
    InsufficientBalanceError,
    NetworkError,
    NonceConflictError,
    ReceiptTimeoutError,
    RetriesExhaustedError,
    RpcError,
    TransactionFailedError,
    VerificationError,
)
from .wallet import Account
from .config import Settings, load_settings
from .chain.abi import ContractArtifact, load_artifact
from .chain.models import (
    ChainEndpoint,
    FeeData,
    OutcomeStatus,
    Receipt,
    SubmissionResult,
    TransactionOutcome,
    TransactionRequest,
)
from .chain.rpc import ChainClient
from .submit.fees import FeeEstimator, check_sufficient_balance, estimate_required_funds
from .submit.jobs import JobSpec, build_job_spec, compute_expiration_block
from .submit.nonce import NonceCoordinator
from .submit.retry import run_with_retry
from .submit.submitter import TransactionSubmitter
from .submit.verify import DeploymentVerifier, VerificationReport
from .record import DeploymentRecord, write_deployment_record
