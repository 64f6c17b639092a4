"""
Pure Python client for the Selas job-submission API.

The backend owns users, tokens, credits and jobs; this package wraps its
remote procedures and the per-job result notifications.
"""

from .config import Credentials, SelasSettings
from .constants import VERSION as __version__
from .errors import SelasAPIError, SelasConfigError, SelasError, SelasJobTimeout, SelasTransportError
from .models import RpcError, RpcResponse, StableDiffusionConfig, WorkerFilter
from .service import SelasClient, create_selas_client
from .subscription import JobSubscriber, JobSubscription, wait_for_job_result

__all__ = [
    "Credentials",
    "JobSubscriber",
    "JobSubscription",
    "RpcError",
    "RpcResponse",
    "SelasAPIError",
    "SelasClient",
    "SelasConfigError",
    "SelasError",
    "SelasJobTimeout",
    "SelasSettings",
    "SelasTransportError",
    "StableDiffusionConfig",
    "WorkerFilter",
    "create_selas_client",
    "wait_for_job_result",
]
