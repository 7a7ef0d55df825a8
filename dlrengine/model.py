"""
Model: metadata about a loaded network plus the root tensor arena.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from dlrengine.config import find_model_config, pick
from dlrengine.device import Device
from dlrengine.engine import Engine, get_engine
from dlrengine.errors import EngineException, RuntimeLoadError
from dlrengine.inference.runtime.wrapper import NativeRuntime
from dlrengine.inference.runtimeType import RuntimeType
from dlrengine.ndarray import NDManager
from dlrengine.utils import get_logger

logger = get_logger(__name__)


class Model:
    """
    A network loaded through one native runtime session.

    The model's manager is the root of every predictor's arena, so closing
    the model releases all predictors created from it.

    Example:
        >>> with Model("resnet").load("models/resnet_dlr") as model:
        ...     with model.new_predictor(NumpyTranslator()) as predictor:
        ...         logits = predictor.predict(image)
    """

    def __init__(
        self,
        name: Optional[str] = None,
        device=None,
        engine: Optional[Engine] = None,
    ):
        self.name = name
        self.device = Device.from_name(device)
        self.engine = engine if engine is not None else get_engine()
        self.manager = NDManager(name=f"model:{name}", device=self.device)
        self.model_dir: Optional[str] = None
        self.runtime_id: Optional[int] = None
        self.properties: Dict[str, Any] = {}

    @property
    def is_loaded(self) -> bool:
        return self.runtime_id is not None

    def load(self, model_dir, runtime="auto", **options) -> "Model":
        """Register a runtime session for ``model_dir``.

        Options are merged with ``config.yml``/``config.json`` found in the
        model directory; explicit options win. Recognized keys:
        ``runtime``, ``name``, ``num_threads``, ``cpu_affinity``.

        Args:
            model_dir: Directory holding the model artifacts.
            runtime: "auto", a runtime name ("dlr", "onnx", "openvino",
                "torchscript"), a RuntimeType, or a runtime object exposing
                ``create_model(model_dir, device)``.

        Raises:
            RuntimeLoadError: If the directory is missing or no runtime
                matches its contents.
        """
        if self.is_loaded:
            raise EngineException(f"Model {self.name} is already loaded from {self.model_dir}")

        model_dir = os.fspath(model_dir)
        if not os.path.exists(model_dir):
            raise RuntimeLoadError(f"Model directory not found: {model_dir}")

        file_config = find_model_config(model_dir) if os.path.isdir(model_dir) else {}
        self.properties = {**file_config, **options}

        self.name = pick(self.name, file_config.get("name"), os.path.basename(model_dir.rstrip(os.sep)))
        self.manager.name = f"model:{self.name}"

        if runtime == "auto":
            runtime = file_config.get("runtime", "auto")

        if hasattr(runtime, "create_model"):
            session = runtime
        else:
            try:
                session = self._native_runtime(model_dir, runtime, file_config, options)
            except ValueError as exc:
                raise RuntimeLoadError(str(exc)) from exc

        self.model_dir = model_dir
        self.runtime_id = self.engine.register_runtime(session)
        logger.info("Model %s bound to runtime %d (%s)", self.name, self.runtime_id, model_dir)
        return self

    @staticmethod
    def _native_runtime(model_dir, runtime, file_config, options) -> NativeRuntime:
        if isinstance(runtime, str):
            runtime_type = (
                RuntimeType.from_path(model_dir)
                if runtime == "auto"
                else RuntimeType.from_name(runtime)
            )
        else:
            runtime_type = runtime
        return NativeRuntime(
            runtime_type,
            num_threads=pick(options.get("num_threads"), file_config.get("num_threads")),
            cpu_affinity=pick(options.get("cpu_affinity"), file_config.get("cpu_affinity")),
        )

    def new_predictor(self, translator, device=None):
        """Create a Predictor for this model with its own arena and handle."""
        from dlrengine.predictor import Predictor

        if not self.is_loaded:
            raise EngineException(f"Model {self.name} has not been loaded")
        return Predictor(
            self.runtime_id,
            self,
            self.model_dir,
            device if device is not None else self.device,
            translator,
            engine=self.engine,
        )

    def close(self) -> None:
        """Release every predictor created from this model. Idempotent."""
        if not self.manager.is_open:
            return
        logger.info("Closing model %s", self.name)
        try:
            self.manager.close()
        finally:
            if self.runtime_id is not None:
                self.engine.unregister_runtime(self.runtime_id)

    def __enter__(self) -> "Model":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Model(name={self.name!r}, model_dir={self.model_dir!r}, device={self.device})"
