from __future__ import annotations

import json
import threading
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

import pysher

from . import constants
from .config import SelasSettings
from .errors import SelasJobTimeout
from .logging import get_logger

T = TypeVar("T")

logger = get_logger()

PusherFactory = Callable[[SelasSettings], Any]


def job_channel_name(job_id: str) -> str:
    return f"{constants.JOB_CHANNEL_PREFIX}{job_id}"


def decode_event_data(data: Any) -> Any:
    """Pusher hands event data over as a JSON string; decode it when possible."""
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8")
    if isinstance(data, str):
        try:
            return json.loads(data)
        except ValueError:
            return data
    return data


def default_pusher_factory(settings: SelasSettings) -> pysher.Pusher:
    return pysher.Pusher(settings.pusher_key, cluster=settings.pusher_cluster)


class JobSubscription(Generic[T]):
    """One callback registered on the ``result`` event of a job channel."""

    def __init__(
        self,
        subscriber: "JobSubscriber",
        job_id: str,
        callback: Callable[[T], None],
        decoder: Optional[Callable[[Any], T]] = None,
    ) -> None:
        self._subscriber = subscriber
        self.job_id = job_id
        self.channel_name = job_channel_name(job_id)
        self.callback = callback
        self.decoder = decoder
        self.active = True

    def deliver(self, data: Any) -> None:
        if not self.active:
            return
        payload = decode_event_data(data)
        if self.decoder is not None:
            payload = self.decoder(payload)
        self.callback(payload)

    def unsubscribe(self) -> None:
        self._subscriber.remove(self)

    def __repr__(self) -> str:
        return f"JobSubscription(job_id={self.job_id!r}, active={self.active})"


class JobSubscriber:
    """
    Owns one Pusher connection and dispatches job ``result`` events to callbacks.

    The connection is opened lazily on the first ``subscribe`` and reused for
    every later one. Channels are (re)subscribed each time Pusher reports an
    established connection, so registrations made while connecting, or before a
    reconnect, are not lost. Callbacks run on the Pusher transport thread.
    """

    def __init__(
        self,
        settings: Optional[SelasSettings] = None,
        *,
        pusher_factory: Optional[PusherFactory] = None,
    ) -> None:
        self.settings = settings or SelasSettings()
        self._pusher_factory = pusher_factory or default_pusher_factory
        self._pusher: Any = None
        self._lock = threading.RLock()
        self._registrations: Dict[str, List[JobSubscription]] = {}

    # ------------------------------------------------------------------ #
    # Connection lifecycle
    # ------------------------------------------------------------------ #
    @property
    def connected(self) -> bool:
        pusher = self._pusher
        return pusher is not None and getattr(pusher.connection, "state", None) == "connected"

    def _ensure_pusher(self) -> Any:
        if self._pusher is None:
            logger.info(
                "连接推送服务 key=%s cluster=%s",
                self.settings.pusher_key,
                self.settings.pusher_cluster,
            )
            pusher = self._pusher_factory(self.settings)
            pusher.connection.bind(constants.CONNECTION_ESTABLISHED_EVENT, self._on_connected)
            self._pusher = pusher
            pusher.connect()
        return self._pusher

    def _on_connected(self, data: Any = None) -> None:
        with self._lock:
            channel_names = list(self._registrations)
        logger.info("推送服务已连接，订阅 %s 个任务频道", len(channel_names))
        for channel_name in channel_names:
            self._subscribe_channel(channel_name)

    def _subscribe_channel(self, channel_name: str) -> None:
        channel = self._pusher.subscribe(channel_name)
        channel.bind(constants.RESULT_EVENT, self._dispatch, channel_name)

    def _dispatch(self, data: Any, channel_name: str) -> None:
        with self._lock:
            registrations = list(self._registrations.get(channel_name, ()))
        for subscription in registrations:
            try:
                subscription.deliver(data)
            except Exception:
                logger.exception("任务 %s 的结果回调执行失败", subscription.job_id)

    def close(self) -> None:
        with self._lock:
            pusher = self._pusher
            registrations = [sub for subs in self._registrations.values() for sub in subs]
            self._registrations.clear()
            self._pusher = None
        for subscription in registrations:
            subscription.active = False
        if pusher is not None:
            logger.info("断开推送服务连接")
            pusher.disconnect()

    def __enter__(self) -> "JobSubscriber":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Subscriptions
    # ------------------------------------------------------------------ #
    def subscribe(
        self,
        job_id: str,
        callback: Callable[[T], None],
        *,
        decoder: Optional[Callable[[Any], T]] = None,
    ) -> JobSubscription[T]:
        subscription: JobSubscription[T] = JobSubscription(self, job_id, callback, decoder)
        with self._lock:
            self._ensure_pusher()
            registrations = self._registrations.setdefault(subscription.channel_name, [])
            first = not registrations
            registrations.append(subscription)
        logger.info("订阅任务 %s (频道 %s)", job_id, subscription.channel_name)
        if first and self.connected:
            self._subscribe_channel(subscription.channel_name)
        return subscription

    def remove(self, subscription: JobSubscription) -> None:
        with self._lock:
            subscription.active = False
            registrations = self._registrations.get(subscription.channel_name)
            if not registrations or subscription not in registrations:
                return
            registrations.remove(subscription)
            leave = not registrations
            if leave:
                del self._registrations[subscription.channel_name]
            pusher = self._pusher
        if leave and pusher is not None:
            logger.info("取消订阅频道 %s", subscription.channel_name)
            pusher.unsubscribe(subscription.channel_name)

    def subscriptions(self, job_id: Optional[str] = None) -> List[JobSubscription]:
        with self._lock:
            if job_id is not None:
                return list(self._registrations.get(job_channel_name(job_id), ()))
            return [sub for subs in self._registrations.values() for sub in subs]


def wait_for_job_result(
    subscriber: JobSubscriber,
    job_id: str,
    *,
    timeout: float = constants.JOB_RESULT_TIMEOUT,
    decoder: Optional[Callable[[Any], T]] = None,
) -> Any:
    """Block until the first ``result`` event of ``job_id`` and return its payload."""
    done = threading.Event()
    box: Dict[str, Any] = {}

    def _on_result(payload: Any) -> None:
        if not done.is_set():
            box["payload"] = payload
            done.set()

    subscription = subscriber.subscribe(job_id, _on_result, decoder=decoder)
    try:
        if not done.wait(timeout):
            raise SelasJobTimeout(f"等待任务 {job_id} 结果超时 {timeout:.0f}s")
        return box["payload"]
    finally:
        subscription.unsubscribe()
