# inference/runtime/backends/openvino_backend.py

"""
OpenVINO backend implementation.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import numpy as np

from dlrengine.device import Device
from dlrengine.utils import get_logger

from .base import Feeds, InferenceBackend, Outputs

logger = get_logger(__name__)

try:
    import openvino as ov

    OPENVINO_AVAILABLE = True
except ImportError:
    OPENVINO_AVAILABLE = False


class OpenVinoBackend(InferenceBackend):
    """Inference backend based on OpenVINO Runtime."""

    backend_name = "openvino"

    def __init__(
        self,
        model_path: str,
        device: Device,
        *,
        num_threads: int | None = None,
        cpu_affinity: bool | None = None,
    ):
        """Initialize OpenVINO backend.

        Args:
            model_path (str): Path to OpenVINO model. Can be:
                - Directory containing .xml and .bin files
                - Direct path to .xml file
            device (Device): "cpu" maps to "CPU", "gpu" to "GPU.<id>".
            num_threads (int | None, optional): Number of CPU inference threads.
            cpu_affinity (bool | None, optional): Pin CPU inference threads.

        Raises:
            ImportError: If OpenVINO is not installed.
            FileNotFoundError: If no .xml file found in directory.
        """

        if not OPENVINO_AVAILABLE:
            raise ImportError(
                "OpenVINO is not installed. Install with: pip install openvino"
            )

        self.device_name = f"GPU.{device.device_id}" if device.is_gpu else "CPU"
        self.core = ov.Core()

        if not device.is_gpu:
            if num_threads:
                self.core.set_property("CPU", {"INFERENCE_NUM_THREADS": num_threads})
            if cpu_affinity is not None:
                self.core.set_property(
                    "CPU", {"ENABLE_CPU_PINNING": bool(cpu_affinity)}
                )

        logger.info("Initializing OpenVINO with device=%s", self.device_name)

        model_path = Path(model_path)

        if model_path.is_dir():
            xml_files = sorted(model_path.glob("*.xml"))
            if not xml_files:
                raise FileNotFoundError(f"No .xml model file found in {model_path}")
            model_file = xml_files[0]
        else:
            model_file = model_path

        self.model = self.core.read_model(model_file)
        self.compiled_model = self.core.compile_model(self.model, self.device_name)

        self.input_names: List[str] = [
            port.any_name for port in self.compiled_model.inputs
        ]
        self.output_layers: List = list(self.compiled_model.outputs)
        self.output_names: List[str] = [
            port.any_name for port in self.output_layers
        ]
        self.device = device

    def run(self, feeds: Feeds) -> Outputs:
        logger.debug(
            "OpenVINO input shapes: %s", {k: v.shape for k, v in feeds.items()}
        )
        results = self.compiled_model(feeds)
        return [np.asarray(results[port]) for port in self.output_layers]

    @property
    def weight_names(self) -> List[str]:
        # constants of the IR graph hold the weights
        return [
            op.get_friendly_name()
            for op in self.model.get_ops()
            if op.get_type_name() == "Constant"
        ]

    def close(self) -> None:
        """Release compiled model, core runtime, and associated resources."""
        self.compiled_model = None
        self.model = None
        self.core = None
