# inference/runtime/wrapper.py

"""
Native runtime entry point.

Selects a backend from the runtime type (or the model directory contents)
and wraps the loaded model in an owned ModelHandle.
"""

from __future__ import annotations

import os
from typing import Optional, Union

from dlrengine.device import Device
from dlrengine.errors import RuntimeLoadError
from dlrengine.utils import get_logger

from ..runtimeType import RuntimeType
from .backends.base import InferenceBackend
from .handle import ModelHandle

logger = get_logger(__name__)


def make_backend(
    model_path: str,
    device: Device,
    runtime_type: Optional[RuntimeType] = None,
    **options,
) -> InferenceBackend:
    """Factory function to create the native backend for a model.

    Args:
        model_path (str): Model directory (or single model file).
        device (Device): Target device.
        runtime_type (RuntimeType, optional): Runtime to use. Detected from
            the model artifacts when None:
            - compiled .so/.dylib with .params/.meta → DLR
            - .onnx → ONNX Runtime
            - .xml/.bin → OpenVINO
            - .pt/.pts/.torchscript → TorchScript
        **options: Backend options (``num_threads``, ``cpu_affinity``).

    Returns:
        InferenceBackend: Initialized backend instance ready for inference.

    Raises:
        FileNotFoundError: If model_path does not exist.
        ValueError: If no runtime matches the model artifacts.
        ImportError: If required backend dependencies are not installed.
    """

    if not os.path.exists(model_path):
        raise FileNotFoundError(f"Model path not found: {model_path}")

    if runtime_type is None:
        runtime_type = RuntimeType.from_path(model_path)
    logger.info(f"Creating {runtime_type.value} backend for model: {model_path}")

    if runtime_type == RuntimeType.DLR:
        from .backends.dlr_backend import DlrBackend

        return DlrBackend(model_path, device, **options)

    if runtime_type == RuntimeType.ONNX:
        from .backends.onnx_backend import OnnxBackend

        return OnnxBackend(model_path, device, **options)

    if runtime_type == RuntimeType.OPENVINO:
        from .backends.openvino_backend import OpenVinoBackend

        return OpenVinoBackend(model_path, device, **options)

    if runtime_type == RuntimeType.TORCHSCRIPT:
        from .backends.torchscript_backend import TorchScriptBackend

        return TorchScriptBackend(model_path, device, **options)

    raise NotImplementedError(f"RuntimeType {runtime_type} is not supported.")


class NativeRuntime:
    """
    One native runtime session. Every model it creates is loaded through
    the same backend type with the same options.
    """

    def __init__(
        self,
        runtime_type: Union[RuntimeType, str, None] = None,
        *,
        num_threads: Optional[int] = None,
        cpu_affinity: Optional[bool] = None,
    ):
        if isinstance(runtime_type, str):
            runtime_type = (
                None if runtime_type == "auto" else RuntimeType.from_name(runtime_type)
            )
        self.runtime_type = runtime_type
        self.options = {}
        if num_threads is not None:
            self.options["num_threads"] = num_threads
        if cpu_affinity is not None:
            self.options["cpu_affinity"] = cpu_affinity

    @property
    def name(self) -> str:
        return self.runtime_type.value if self.runtime_type else "auto"

    def create_model(self, model_dir: str, device: Device) -> ModelHandle:
        """Load ``model_dir`` onto ``device``.

        Raises:
            RuntimeLoadError: For any failure while loading.
        """
        try:
            backend = make_backend(model_dir, device, self.runtime_type, **self.options)
        except Exception as exc:
            logger.error(f"Failed to load {model_dir} on {device}: {exc}")
            raise RuntimeLoadError(
                f"{self.name} runtime could not load {model_dir} on {device}: {exc}"
            ) from exc
        return ModelHandle(backend, model_dir=model_dir, device=device)

    def __repr__(self) -> str:
        return f"NativeRuntime({self.name!r}, options={self.options})"
