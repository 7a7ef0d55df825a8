# inference/runtime/handle.py

"""
Owned handle to a model loaded by a native runtime.
"""

from __future__ import annotations

import threading
from typing import List, Optional

from dlrengine.device import Device
from dlrengine.errors import ClosedResourceError, EngineException
from dlrengine.utils import get_logger

from .backends.base import Feeds, InferenceBackend, Outputs

logger = get_logger(__name__)


class ModelHandle:
    """
    A loaded model, owned by whoever holds the handle.

    The handle is released exactly once; every operation after release
    raises ClosedResourceError. NDManager.attach() accepts a handle, so a
    predictor's arena releases it together with its tensors.
    """

    def __init__(
        self,
        backend: InferenceBackend,
        runtime_id: Optional[int] = None,
        model_dir: Optional[str] = None,
        device: Optional[Device] = None,
    ):
        self._backend: Optional[InferenceBackend] = backend
        self.runtime_id = runtime_id
        self.model_dir = model_dir
        self.device = device
        self._lock = threading.Lock()

    @property
    def is_released(self) -> bool:
        return self._backend is None

    @property
    def backend(self) -> InferenceBackend:
        backend = self._backend
        if backend is None:
            raise ClosedResourceError(
                f"Model handle for {self.model_dir} has been released"
            )
        return backend

    @property
    def backend_name(self) -> str:
        return getattr(self.backend, "backend_name", type(self.backend).__name__)

    @property
    def input_names(self) -> List[str]:
        return list(self.backend.input_names)

    @property
    def output_names(self) -> List[str]:
        return list(self.backend.output_names)

    @property
    def weight_names(self) -> List[str]:
        """Names of the parameters stored in the loaded model."""
        backend = self.backend
        if not hasattr(backend, "weight_names"):
            logger.warning(
                f"{type(backend).__name__} does not expose weight names. Returning an empty list."
            )
            return []
        return list(backend.weight_names)

    def run(self, feeds: Feeds) -> Outputs:
        """Execute the model once and return its outputs in order."""
        backend = self.backend
        try:
            return backend.run(feeds)
        except EngineException:
            raise
        except Exception as exc:
            raise EngineException(
                f"{self.backend_name} failed to run model {self.model_dir}: {exc}"
            ) from exc

    def set_num_threads(self, num_threads: int) -> None:
        backend = self.backend
        if hasattr(backend, "set_num_threads"):
            backend.set_num_threads(num_threads)
        else:
            logger.warning(
                f"{type(backend).__name__} only applies num_threads at load time. Skipping."
            )

    def use_cpu_affinity(self, enabled: bool) -> None:
        backend = self.backend
        if hasattr(backend, "use_cpu_affinity"):
            backend.use_cpu_affinity(enabled)
        else:
            logger.warning(
                f"{type(backend).__name__} only applies cpu_affinity at load time. Skipping."
            )

    def release(self) -> None:
        """Delete the native model. Idempotent."""
        with self._lock:
            backend, self._backend = self._backend, None
        if backend is None:
            return
        logger.info("Releasing %s model handle for %s", type(backend).__name__, self.model_dir)
        backend.close()

    close = release

    def __repr__(self) -> str:
        state = "released" if self.is_released else "live"
        return f"ModelHandle(runtime_id={self.runtime_id}, model_dir={self.model_dir!r}, {state})"
