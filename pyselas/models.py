from __future__ import annotations

import json
import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterator, Literal, Optional

from . import constants

BatchSize = Literal[1, 2, 4, 8, 16]
Sampler = Literal["plms", "ddim", "k_lms", "k_euler", "k_euler_a"]
ImageSize = Literal[384, 448, 512, 575, 640, 704, 768]
ImageFormat = Literal["png", "jpeg", "avif", "webp"]


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {name: value for name, value in values.items() if value is not None}


@dataclass(frozen=True)
class RpcError:
    """Error value returned by the backend. Never raised."""

    message: str
    code: Optional[str] = None
    details: Optional[str] = None
    hint: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any, status_code: Optional[int] = None) -> "RpcError":
        if isinstance(payload, dict):
            return cls(
                message=str(payload.get("message") or payload.get("error") or "请求失败"),
                code=payload.get("code"),
                details=payload.get("details"),
                hint=payload.get("hint"),
                status_code=status_code,
            )
        return cls(message=str(payload), status_code=status_code)

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


@dataclass(frozen=True)
class RpcResponse:
    """
    Result pair of a remote procedure call.

    Exactly one of ``data`` and ``error`` is meaningful: ``error`` is ``None``
    on success. The pair unpacks like a tuple::

        data, error = client.echo("Hello")
    """

    data: Any = None
    error: Optional[RpcError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __iter__(self) -> Iterator[Any]:
        yield self.data
        yield self.error


@dataclass(frozen=True)
class WorkerFilter:
    """Routing constraint on the worker that may run a submitted job."""

    id: Optional[str] = None
    name: Optional[str] = None
    branch: Optional[str] = None
    is_dirty: Optional[bool] = None
    cluster: Optional[int] = None

    @classmethod
    def default(cls) -> "WorkerFilter":
        return cls(branch=constants.DEFAULT_WORKER_BRANCH)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({f.name: getattr(self, f.name) for f in fields(self)})


@dataclass
class StableDiffusionConfig:
    """
    Parameters of a Stable Diffusion job.

    :param steps: number of diffusion steps. Around 30 is usually enough.
    :param skip_steps: steps skipped at the start when refining ``init_image``;
        0 behaves like a random start.
    :param batch_size: number of images generated per step.
    :param sampler: sampling algorithm.
    :param guidance_scale: how closely the image follows the prompt. Typical
        values are between 5 and 15.
    :param width: width of the generated image in pixels.
    :param height: height of the generated image in pixels.
    :param prompt: description of the image to generate.
    :param negative_prompt: what the image should avoid ("ugly", "blurry"...).
    :param init_image: url of an image to start from instead of noise.
    :param mask: url of a black and white mask; only white pixels are modified.
    :param image_format: output format.
    :param translate_prompt: translate the prompt to English first.
    :param nsfw_filter: filter NSFW content out of the result.
    :param seed: random seed; the same seed and parameters give the same image.
    """

    steps: int
    skip_steps: int
    batch_size: BatchSize
    sampler: Sampler
    guidance_scale: float
    width: ImageSize
    height: ImageSize
    prompt: str
    negative_prompt: str
    image_format: ImageFormat
    translate_prompt: bool
    nsfw_filter: bool
    init_image: Optional[str] = None
    mask: Optional[str] = None
    seed: Optional[int] = None

    # Wire order of the backend payload; differs from the dataclass order
    # because optional fields must come last in a dataclass.
    FIELD_ORDER = (
        "steps",
        "skip_steps",
        "batch_size",
        "sampler",
        "guidance_scale",
        "width",
        "height",
        "prompt",
        "negative_prompt",
        "init_image",
        "mask",
        "image_format",
        "translate_prompt",
        "nsfw_filter",
        "seed",
    )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({name: getattr(self, name) for name in self.FIELD_ORDER})

    def to_json(self) -> str:
        # Non-finite numbers become null, as JSON has no NaN or Infinity.
        payload = {
            name: None if isinstance(value, float) and not math.isfinite(value) else value
            for name, value in self.to_dict().items()
        }
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
