# inference/runtime/backends/torchscript_backend.py

"""
TorchScript backend implementation.
"""

from __future__ import annotations

from typing import List

import numpy as np
import torch

from dlrengine.device import Device
from dlrengine.utils import get_logger

from ...runtimeType import find_artifact
from .base import Feeds, InferenceBackend, Outputs

logger = get_logger(__name__)

TORCHSCRIPT_EXTENSIONS = (".pt", ".pts", ".torchscript")


class TorchScriptBackend(InferenceBackend):
    """Inference backend based on TorchScript."""

    backend_name = "torchscript"

    def __init__(
        self,
        model_path: str,
        device: Device,
        *,
        num_threads: int | None = None,
        cpu_affinity: bool | None = None,
    ):
        """Load a TorchScript module.

        Args:
            model_path (str): Path to a TorchScript file or a directory holding one.
            device (Device): Target device. A GPU device fails to load when
                CUDA is unavailable.
            num_threads (int | None, optional): Number of CPU threads for inference.
            cpu_affinity (bool | None, optional): Accepted for interface parity.

        Example:
            >>> backend = TorchScriptBackend("model_dir/", Device.cpu(), num_threads=8)
        """

        if device.is_gpu and not torch.cuda.is_available():
            raise RuntimeError(f"CUDA is not available for device {device}")
        self.device = device
        self.torch_device = device.to_torch()

        if num_threads and not device.is_gpu:
            torch.set_num_threads(num_threads)

        model_file = find_artifact(str(model_path), TORCHSCRIPT_EXTENSIONS)
        logger.info(
            "Loading TorchScript model %s with device=%s", model_file, self.torch_device
        )

        self.model = torch.jit.load(model_file, map_location=self.torch_device)
        self.model.eval()

        # Skip the implicit `self` argument
        arguments = self.model.forward.schema.arguments[1:]
        self.input_names: List[str] = [arg.name for arg in arguments]
        self.output_names: List[str] = []

    def run(self, feeds: Feeds) -> Outputs:
        inputs = [
            torch.from_numpy(np.ascontiguousarray(feeds[name])).to(self.torch_device)
            for name in self.input_names
        ]

        with torch.no_grad():
            outputs = self.model(*inputs)

        if not isinstance(outputs, (list, tuple)):
            outputs = [outputs]

        results = [out.detach().cpu().numpy() for out in outputs]
        if not self.output_names:
            self.output_names = [f"output{i}" for i in range(len(results))]
        logger.debug("TorchScript output shapes: %s", [r.shape for r in results])
        return results

    @property
    def weight_names(self) -> List[str]:
        return list(self.model.state_dict().keys())

    def set_num_threads(self, num_threads: int) -> None:
        torch.set_num_threads(num_threads)

    def close(self) -> None:
        """Release TorchScript model and clear GPU cache."""

        self.model = None
        if self.torch_device.type == "cuda":
            torch.cuda.empty_cache()
