"""
Device value object.
"""

from __future__ import annotations

from dataclasses import dataclass

import torch

CPU = "cpu"
GPU = "gpu"

_ALIASES = {
    "cpu": CPU,
    "host": CPU,
    "gpu": GPU,
    "cuda": GPU,
}


@dataclass(frozen=True)
class Device:
    """Identifies the compute hardware a model runs on.

    Example:
        >>> Device.from_name("cuda:1")
        Device(device_type='gpu', device_id=1)
    """

    device_type: str = CPU
    device_id: int = 0

    def __post_init__(self):
        if self.device_type not in (CPU, GPU):
            raise ValueError(f"Unsupported device type: {self.device_type}")
        if self.device_id < 0:
            raise ValueError(f"Device id must be >= 0, got {self.device_id}")

    @classmethod
    def cpu(cls) -> Device:
        return cls(CPU, 0)

    @classmethod
    def gpu(cls, device_id: int = 0) -> Device:
        return cls(GPU, device_id)

    @classmethod
    def default(cls) -> Device:
        """GPU 0 when CUDA is available, otherwise CPU."""
        return cls.gpu(0) if torch.cuda.is_available() else cls.cpu()

    @classmethod
    def from_name(cls, name: str | Device | None) -> Device:
        """Parse "cpu", "gpu", "gpu:1", "cuda:0" or "auto"."""
        if isinstance(name, Device):
            return name
        if name is None or name.lower() == "auto":
            return cls.default()

        kind, _, index = name.lower().partition(":")
        if kind not in _ALIASES:
            raise ValueError(f"Unknown device name: {name}")
        try:
            device_id = int(index) if index else 0
        except ValueError as exc:
            raise ValueError(f"Invalid device index in {name!r}") from exc
        return cls(_ALIASES[kind], device_id)

    @property
    def is_gpu(self) -> bool:
        return self.device_type == GPU

    def to_torch(self) -> torch.device:
        if self.is_gpu:
            return torch.device("cuda", self.device_id)
        return torch.device("cpu")

    def __str__(self) -> str:
        return f"{self.device_type}({self.device_id})"
