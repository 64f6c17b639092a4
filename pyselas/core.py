from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import requests

from . import constants
from .config import Credentials, SelasSettings
from .errors import SelasAPIError, SelasTransportError
from .logging import get_logger
from .models import RpcError, RpcResponse

logger = get_logger()

SESSION = requests.Session()

RpcParams = Dict[str, Any]


def build_headers(settings: SelasSettings) -> Dict[str, str]:
    return {
        "apikey": settings.supabase_key,
        "Authorization": f"Bearer {settings.supabase_key}",
        "Content-Type": "application/json",
        "Accept": "application/json",
        "X-Client-Info": constants.CLIENT_INFO,
    }


def with_credentials(params: Optional[Mapping[str, Any]], credentials: Credentials) -> RpcParams:
    payload = dict(params or {})
    # Credentials always win over caller params.
    payload[constants.PARAM_SECRET] = credentials.secret
    payload[constants.PARAM_APP_ID] = credentials.app_id
    payload[constants.PARAM_KEY] = credentials.key
    return payload


def check_result(response: requests.Response) -> RpcResponse:
    if response.status_code >= 400:
        try:
            payload = response.json()
        except ValueError:
            payload = response.text or response.reason
        error = RpcError.from_payload(payload, status_code=response.status_code)
        logger.warning("RPC 返回错误 status=%s %s", response.status_code, error)
        return RpcResponse(error=error)

    if not response.content:
        return RpcResponse(data=None)

    try:
        return RpcResponse(data=response.json())
    except ValueError as exc:
        raise SelasAPIError(
            f"非JSON响应: {response.text[:200]}", status_code=response.status_code
        ) from exc


def call_rpc(
    settings: SelasSettings,
    credentials: Credentials,
    fn: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    session: Optional[requests.Session] = None,
) -> RpcResponse:
    url = settings.rpc_base_url + fn
    payload = with_credentials(params, credentials)
    http = session or SESSION

    logger.info("调用 RPC %s", fn)
    logger.debug(
        "RPC %s 参数=%s",
        fn,
        sorted(name for name in payload if name not in constants.RESERVED_PARAMS),
    )
    try:
        resp = http.post(
            url,
            json=payload,
            headers=build_headers(settings),
            timeout=settings.timeout,
        )
    except requests.RequestException as exc:
        raise SelasTransportError(f"RPC {fn} 请求异常: {exc}") from exc

    return check_result(resp)
