from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Union

from . import constants
from .errors import SelasConfigError


@dataclass(frozen=True)
class Credentials:
    """Application credentials attached to every backend call."""

    app_id: str
    key: str
    secret: str = field(repr=False)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Credentials":
        # The backend rejects missing or wrong credentials on the first call.
        return cls(app_id=values.get("app_id"), key=values.get("key"), secret=values.get("secret"))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Credentials":
        env = os.environ if environ is None else environ
        prefix = constants.ENV_PREFIX
        values = {
            "app_id": env.get(f"{prefix}APP_ID"),
            "key": env.get(f"{prefix}APP_KEY"),
            "secret": env.get(f"{prefix}APP_SECRET"),
        }
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise SelasConfigError(f"缺少凭证环境变量: {', '.join(missing)}")
        return cls.from_mapping(values)


CredentialsArg = Union[Credentials, Mapping[str, Any]]


def as_credentials(credentials: CredentialsArg) -> Credentials:
    if isinstance(credentials, Credentials):
        return credentials
    return Credentials.from_mapping(credentials)


@dataclass(frozen=True)
class SelasSettings:
    """
    Endpoints and tunables of the Selas backend.

    Every field defaults to the production value from ``constants`` so that
    ``SelasSettings()`` talks to the public service; override fields (or use
    ``from_env``) to point the client at another environment.
    """

    supabase_url: str = constants.SUPABASE_URL
    supabase_key: str = field(default=constants.SUPABASE_KEY, repr=False)
    pusher_key: str = constants.PUSHER_KEY
    pusher_cluster: str = constants.PUSHER_CLUSTER
    stable_diffusion_service_id: str = constants.STABLE_DIFFUSION_SERVICE_ID
    timeout: float = constants.REQUEST_TIMEOUT

    @property
    def rpc_base_url(self) -> str:
        return self.supabase_url.rstrip("/") + constants.RPC_PATH

    def with_overrides(self, **overrides: Any) -> "SelasSettings":
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SelasSettings":
        env = os.environ if environ is None else environ
        prefix = constants.ENV_PREFIX
        overrides: dict = {}
        for name in (
            "supabase_url",
            "supabase_key",
            "pusher_key",
            "pusher_cluster",
            "stable_diffusion_service_id",
        ):
            value = env.get(prefix + name.upper())
            if value:
                overrides[name] = value
        timeout = env.get(f"{prefix}TIMEOUT")
        if timeout:
            try:
                overrides["timeout"] = float(timeout)
            except ValueError as exc:
                raise SelasConfigError(f"{prefix}TIMEOUT 不是合法数字: {timeout}") from exc
        return cls(**overrides)
