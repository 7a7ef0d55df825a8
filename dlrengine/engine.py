"""
Engine: registry of native runtime sessions keyed by integer id.
"""

from __future__ import annotations

import itertools
import os
import threading
from typing import Dict, List, Optional, Protocol

from dlrengine.device import Device
from dlrengine.errors import RuntimeLoadError
from dlrengine.inference.runtime.handle import ModelHandle
from dlrengine.utils import get_logger

logger = get_logger(__name__)


class Runtime(Protocol):
    """Anything able to load a model directory onto a device."""

    def create_model(self, model_dir: str, device: Device) -> ModelHandle:
        ...


class Engine:
    """
    Owns the native runtime sessions used by models and predictors.

    Example:
        >>> engine = Engine()
        >>> runtime_id = engine.register_runtime(NativeRuntime("dlr"))
        >>> handle = engine.create_model(runtime_id, "resnet_dlr/", Device.cpu())
    """

    def __init__(self, name: str = "dlrengine"):
        self.name = name
        self._runtimes: Dict[int, Runtime] = {}
        self._ids = itertools.count()
        self._lock = threading.RLock()

    def register_runtime(self, runtime: Runtime) -> int:
        with self._lock:
            runtime_id = next(self._ids)
            self._runtimes[runtime_id] = runtime
        logger.info("Registered runtime %d: %r", runtime_id, runtime)
        return runtime_id

    def unregister_runtime(self, runtime_id: int) -> None:
        with self._lock:
            runtime = self._runtimes.pop(runtime_id, None)
        if runtime is not None:
            logger.info("Unregistered runtime %d", runtime_id)

    def get_runtime(self, runtime_id: int) -> Runtime:
        with self._lock:
            runtime = self._runtimes.get(runtime_id)
        if runtime is None:
            raise RuntimeLoadError(f"Unknown runtime id: {runtime_id}")
        return runtime

    @property
    def runtime_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._runtimes)

    def create_model(self, runtime_id: int, model_dir, device) -> ModelHandle:
        """Ask runtime ``runtime_id`` to load ``model_dir`` onto ``device``.

        Raises:
            RuntimeLoadError: Unknown runtime id, missing directory, or any
                failure reported by the runtime.
        """
        runtime = self.get_runtime(runtime_id)
        model_dir = os.fspath(model_dir)
        try:
            device = Device.from_name(device)
        except ValueError as exc:
            raise RuntimeLoadError(f"Unsupported device: {device}") from exc

        if not os.path.exists(model_dir):
            raise RuntimeLoadError(
                f"Model directory not found: {model_dir}"
            ) from FileNotFoundError(model_dir)

        logger.info("Runtime %d loading %s on %s", runtime_id, model_dir, device)
        try:
            handle = runtime.create_model(model_dir, device)
        except RuntimeLoadError:
            raise
        except Exception as exc:
            logger.error(f"Runtime {runtime_id} failed to load {model_dir}: {exc}")
            raise RuntimeLoadError(
                f"Runtime {runtime_id} could not load {model_dir} on {device}: {exc}"
            ) from exc

        handle.runtime_id = runtime_id
        return handle

    def load_model(
        self,
        model_dir,
        name: Optional[str] = None,
        device=None,
        runtime="auto",
        **options,
    ):
        """Create a Model bound to this engine and load ``model_dir``."""
        from dlrengine.model import Model

        model = Model(name, device=device, engine=self)
        return model.load(model_dir, runtime=runtime, **options)


_default_engine: Optional[Engine] = None
_default_lock = threading.Lock()


def get_engine() -> Engine:
    """Process-wide default engine."""
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = Engine()
        return _default_engine
