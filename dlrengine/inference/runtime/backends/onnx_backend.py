# inference/runtime/backends/onnx_backend.py

from __future__ import annotations

from typing import List

import onnxruntime as ort

from dlrengine.device import Device
from dlrengine.utils import get_logger

from ...runtimeType import find_artifact
from .base import Feeds, InferenceBackend, Outputs

logger = get_logger(__name__)


class OnnxBackend(InferenceBackend):
    """
    ONNX Runtime backend implementation.

    Features:
        - Provider selection from the Device ("gpu" → CUDAExecutionProvider
          pinned to the device id, "cpu" → CPUExecutionProvider).
        - No hidden CPU fallback on GPU, so an unusable GPU fails at load.

    Example:
        >>> backend = OnnxBackend("model_dir/", Device.cpu())
        >>> outputs = backend.run({"data": np.zeros((1, 3), np.float32)})
    """

    backend_name = "onnxruntime"

    def __init__(
        self,
        model_path: str,
        device: Device,
        *,
        num_threads: int | None = None,
        cpu_affinity: bool | None = None,
    ):
        """
        Initialize ONNX Runtime session.

        Args:
            model_path (str): Path to an .onnx file or a directory holding one.
            device (Device): Target device.
            num_threads (int | None, optional): intra-op threads on CPU.
            cpu_affinity (bool | None, optional): Accepted for interface
                parity; ONNX Runtime manages its own thread placement.
        """
        sess_options = ort.SessionOptions()
        sess_options.graph_optimization_level = (
            ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        )
        sess_options.enable_cpu_mem_arena = True

        if device.is_gpu:
            providers = [("CUDAExecutionProvider", {"device_id": device.device_id})]
            # Threads are irrelevant for GPU, keep minimal
            sess_options.intra_op_num_threads = 1
            sess_options.inter_op_num_threads = 1
            if "CUDAExecutionProvider" not in ort.get_available_providers():
                raise RuntimeError("CUDAExecutionProvider is not available")
        else:
            providers = ["CPUExecutionProvider"]
            if num_threads:
                sess_options.intra_op_num_threads = num_threads

        if cpu_affinity is not None:
            logger.debug("cpu_affinity is ignored by the ONNX Runtime backend")

        model_file = find_artifact(str(model_path), (".onnx",))
        logger.info("Initializing ONNX Runtime with providers=%s", providers)

        self.session = ort.InferenceSession(
            model_file, sess_options=sess_options, providers=providers
        )
        logger.info(f"ONNX Runtime providers: {self.session.get_providers()}")

        self.input_names: List[str] = [inp.name for inp in self.session.get_inputs()]
        self.output_names: List[str] = [out.name for out in self.session.get_outputs()]
        self.device = device

    def run(self, feeds: Feeds) -> Outputs:
        outputs = self.session.run(self.output_names, feeds)
        logger.debug("ONNX output shapes: %s", [out.shape for out in outputs])
        return list(outputs)

    @property
    def weight_names(self) -> List[str]:
        return [init.name for init in self.session.get_overridable_initializers()]

    def close(self) -> None:
        """Release ONNX Runtime session resources."""
        self.session = None
