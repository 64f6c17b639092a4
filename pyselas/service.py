from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

import requests

from . import constants
from .config import Credentials, CredentialsArg, SelasSettings, as_credentials
from .core import call_rpc
from .logging import get_logger
from .models import RpcResponse, StableDiffusionConfig, WorkerFilter
from .subscription import JobSubscriber, JobSubscription

logger = get_logger()


def _as_str(response: RpcResponse) -> RpcResponse:
    if response.error is not None or response.data is None:
        return response
    return RpcResponse(data=str(response.data))


class SelasClient:
    """
    Client for the Selas API, acting as the application owner.

    It manages the users, tokens and credits of an app and submits jobs on
    their behalf. Every call carries the app secret: do not ship this client
    to end users, give them a token created with ``create_token`` instead.

    All operations return an :class:`RpcResponse`; backend failures (bad
    credentials, unknown user, insufficient credits...) come back in its
    ``error`` field and are never raised.
    """

    def __init__(
        self,
        credentials: CredentialsArg,
        worker_filter: Optional[WorkerFilter] = None,
        *,
        settings: Optional[SelasSettings] = None,
        session: Optional[requests.Session] = None,
        subscriber: Optional[JobSubscriber] = None,
    ) -> None:
        self.credentials: Credentials = as_credentials(credentials)
        self.worker_filter = worker_filter or WorkerFilter.default()
        self.settings = settings or SelasSettings()
        self._session = session
        self._subscriber = subscriber or JobSubscriber(self.settings)

    @property
    def app_id(self) -> str:
        return self.credentials.app_id

    # ------------------------------------------------------------------ #
    # Remote call
    # ------------------------------------------------------------------ #
    def rpc(self, fn: str, params: Optional[Mapping[str, Any]] = None) -> RpcResponse:
        """Call ``fn`` on the Selas server with app_id, key and secret added."""
        return call_rpc(self.settings, self.credentials, fn, params, session=self._session)

    def echo(self, message: Optional[str] = None) -> RpcResponse:
        params = {} if message is None else {"p_message": message}
        return self.rpc(constants.RPC_ECHO, params)

    # ------------------------------------------------------------------ #
    # Users
    # ------------------------------------------------------------------ #
    def get_app_super_user(self) -> RpcResponse:
        return _as_str(self.rpc(constants.RPC_GET_SUPER_USER))

    def create_app_user(self) -> RpcResponse:
        """
        Create a user under this application.

        The user starts with 0 credits; add some with ``add_credit`` and give
        them access with ``create_token``. ``data`` is the new user id.
        """
        return _as_str(self.rpc(constants.RPC_CREATE_USER))

    def get_app_user_token(self, app_user_id: str) -> RpcResponse:
        response = self.rpc(constants.RPC_GET_USER_TOKEN_VALUE, {"p_app_user_id": app_user_id})
        return _as_str(response)

    def get_app_user_credits(self, app_user_id: str) -> RpcResponse:
        return self.rpc(constants.RPC_GET_USER_CREDITS, {"p_app_user_id": app_user_id})

    def deactivate_app_user(self, app_user_id: str) -> RpcResponse:
        """
        Revoke the active token of a user.

        Two calls, no transaction: the current token is fetched, then revoked.
        The revoke always runs, with a null token if the fetch failed, and only
        its result is returned. Deactivating an already deactivated user fails
        since the backend rejects the revoke.
        """
        token = self.rpc(constants.RPC_GET_TOKEN, {"p_app_user_id": app_user_id})
        return self.rpc(
            constants.RPC_REVOKE_USER_TOKEN,
            {"p_app_user_id": app_user_id, "p_token": token.data},
        )

    # ------------------------------------------------------------------ #
    # Tokens and credits
    # ------------------------------------------------------------------ #
    def create_token(self, app_user_id: str) -> RpcResponse:
        """
        Mint a token for a user.

        The token gives the user access to the API from the public client;
        ``data`` is the token value.
        """
        response = self.rpc(constants.RPC_CREATE_USER_TOKEN, {"p_app_user_id": app_user_id})
        return _as_str(response)

    def add_credit(self, app_user_id: str, amount: float) -> RpcResponse:
        """
        Change the credits of a user by ``amount``, which may be negative.

        Removed credits go back to the app account; a user cannot end up
        with negative credits. ``data`` is the new balance.
        """
        return self.rpc(
            constants.RPC_ADD_USER_CREDITS,
            {"p_amount": amount, "p_app_user_id": app_user_id},
        )

    # ------------------------------------------------------------------ #
    # Jobs
    # ------------------------------------------------------------------ #
    def post_job(self, service_id: str, job_config: str) -> RpcResponse:
        return self.rpc(
            constants.RPC_POST_JOB,
            {
                "p_service_id": service_id,
                "p_job_config": job_config,
                "p_worker_filter": self.worker_filter.to_dict(),
            },
        )

    def run_stable_diffusion(self, config: StableDiffusionConfig) -> RpcResponse:
        """Submit a Stable Diffusion job; it runs on the first available worker."""
        logger.info(
            "提交 StableDiffusion 任务 %sx%s steps=%s batch=%s",
            config.width,
            config.height,
            config.steps,
            config.batch_size,
        )
        return self.post_job(self.settings.stable_diffusion_service_id, config.to_json())

    def get_app_user_job_history_detail(
        self, app_user_id: str, limit: int = 10, offset: int = 0
    ) -> RpcResponse:
        return self.rpc(
            constants.RPC_GET_USER_JOB_HISTORY_DETAIL,
            {"p_app_user_id": app_user_id, "p_limit": limit, "p_offset": offset},
        )

    # ------------------------------------------------------------------ #
    # Notifications
    # ------------------------------------------------------------------ #
    @property
    def subscriber(self) -> JobSubscriber:
        return self._subscriber

    def subscribe_to_job(
        self,
        job_id: str,
        callback: Callable[[Any], None],
        *,
        decoder: Optional[Callable[[Any], Any]] = None,
    ) -> JobSubscription:
        """Call ``callback`` with the payload of each ``result`` event of the job."""
        return self.subscriber.subscribe(job_id, callback, decoder=decoder)

    def close(self) -> None:
        self._subscriber.close()

    def __enter__(self) -> "SelasClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def create_selas_client(
    credentials: CredentialsArg,
    worker_filter: Optional[WorkerFilter] = None,
    *,
    settings: Optional[SelasSettings] = None,
) -> SelasClient:
    """
    Create a Selas client from the credentials of an app.

    ``credentials`` is a :class:`Credentials` or a mapping with the keys
    ``app_id``, ``key`` and ``secret``::

        selas = create_selas_client({"app_id": "...", "key": "...", "secret": "..."})
    """
    return SelasClient(credentials, worker_filter, settings=settings)
