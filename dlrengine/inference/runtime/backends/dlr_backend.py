# inference/runtime/backends/dlr_backend.py

"""
Neo Deep Learning Runtime (DLR) backend implementation.
"""

from __future__ import annotations

import os
from typing import List

import numpy as np

from dlrengine.device import Device
from dlrengine.utils import get_logger

from .base import Feeds, InferenceBackend, Outputs

logger = get_logger(__name__)

try:
    from dlr import DLRModel

    DLR_AVAILABLE = True
except ImportError:
    DLR_AVAILABLE = False


class DlrBackend(InferenceBackend):
    """Inference backend for models compiled with SageMaker Neo / TVM."""

    backend_name = "dlr"

    def __init__(
        self,
        model_path: str,
        device: Device,
        *,
        num_threads: int | None = None,
        cpu_affinity: bool | None = None,
    ):
        """Load a compiled DLR model directory.

        Args:
            model_path (str): Directory holding the compiled artifacts
                (shared library, params and metadata).
            device (Device): Target device. Maps to DLR's ``dev_type``
                ("cpu"/"gpu") and ``dev_id``.
            num_threads (int | None, optional): Worker threads for the TVM
                thread pool. Read by the runtime when the model is created.
            cpu_affinity (bool | None, optional): Pin TVM worker threads to
                cores. Read by the runtime when the model is created.

        Raises:
            ImportError: If the ``dlr`` package is not installed.
        """

        if not DLR_AVAILABLE:
            raise ImportError("DLR is not installed. Install with: pip install dlr")

        # The TVM thread pool reads these once, when the first model is created
        if num_threads:
            os.environ["TVM_NUM_THREADS"] = str(num_threads)
        if cpu_affinity is not None:
            os.environ["TVM_BIND_THREADS"] = "1" if cpu_affinity else "0"

        logger.info(
            "Initializing DLR model from %s on %s:%d",
            model_path,
            device.device_type,
            device.device_id,
        )
        self.model = DLRModel(
            str(model_path), dev_type=device.device_type, dev_id=device.device_id
        )
        self.input_names: List[str] = list(self.model.get_input_names())
        self.output_names: List[str] = list(self.model.get_output_names())
        self.device = device

    def run(self, feeds: Feeds) -> Outputs:
        logger.debug("DLR input shapes: %s", {k: v.shape for k, v in feeds.items()})
        outputs = self.model.run(feeds)
        return [np.asarray(out) for out in outputs]

    def close(self) -> None:
        """Drop the DLR model; the runtime frees the handle on deletion."""
        self.model = None
