"""
Predictor: binds a loaded model, a device and a translator into one callable.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Dict, Generic, Iterable, List, Optional

from dlrengine.block import SymbolBlock
from dlrengine.device import Device
from dlrengine.engine import Engine
from dlrengine.errors import ClosedResourceError, RuntimeLoadError
from dlrengine.general import Profiler
from dlrengine.ndarray import NDManager
from dlrengine.translate import I, O, Translator, TranslatorContext
from dlrengine.utils import get_logger

logger = get_logger(__name__)


class PredictorState(Enum):
    CREATED = "created"
    READY = "ready"
    CLOSED = "closed"


class Predictor(Generic[I, O]):
    """
    Runs typed predictions against a natively loaded model.

    Construction loads a model handle for ``(runtime_id, model_dir, device)``
    into a sub-manager of the model's manager named "predictor". If loading
    fails the sub-manager is released and RuntimeLoadError propagates.

    Calls on one predictor are serialized. Each call gets its own arena,
    closed when the call returns, so intermediate tensors never outlive it.

    Example:
        >>> predictor = Predictor(runtime_id, model, "resnet_dlr/", Device.cpu(), NumpyTranslator())
        >>> logits = predictor.predict(image)
        >>> predictor.close()
    """

    def __init__(
        self,
        runtime_id: int,
        model,
        model_dir: str,
        device,
        translator: Translator[I, O],
        engine: Optional[Engine] = None,
    ):
        if model is None:
            raise ValueError("model must not be None")
        if translator is None:
            raise ValueError("translator must not be None")

        self.state = PredictorState.CREATED
        self.model = model
        self.translator = translator
        try:
            self.device = Device.from_name(device) if device is not None else model.device
        except ValueError as exc:
            raise RuntimeLoadError(f"Unsupported device: {device}") from exc
        self.engine = engine if engine is not None else model.engine
        self.metrics: Dict[str, Profiler] = {
            "preprocess": Profiler(),
            "inference": Profiler(),
            "postprocess": Profiler(),
        }
        self._lock = threading.RLock()
        self._prepared = False

        self.manager: NDManager = model.manager.new_sub_manager(device=self.device)
        self.manager.name = "predictor"

        handle = None
        try:
            handle = self.engine.create_model(runtime_id, model_dir, self.device)
            self.manager.attach(handle)
        except BaseException:
            if handle is not None:
                handle.release()
            self.manager.close()
            raise

        self.block = SymbolBlock(handle)
        self.state = PredictorState.READY
        logger.info(
            "Predictor ready: model=%s backend=%s device=%s",
            getattr(model, "name", None),
            self.block.backend_name,
            self.device,
        )

    @property
    def is_ready(self) -> bool:
        return self.state is PredictorState.READY and self.manager.is_open

    def _check_open(self) -> None:
        if not self.is_ready:
            raise ClosedResourceError("Predictor is closed")

    def _context(self, manager: NDManager) -> TranslatorContext:
        return TranslatorContext(model=self.model, block=self.block, manager=manager)

    def _ensure_prepared(self) -> None:
        if not self._prepared:
            self.translator.prepare(self._context(self.manager))
            self._prepared = True

    def predict(self, input: I) -> O:
        """Translate ``input``, run the block once and translate the result.

        Raises:
            ClosedResourceError: If the predictor (or its model) is closed.
            TranslateException: Propagated unchanged from the translator.
            EngineException: If the native run fails.
        """
        with self._lock:
            self._check_open()
            self._ensure_prepared()
            with self.manager.new_sub_manager("predict") as call_manager:
                ctx = self._context(call_manager)
                with self.metrics["preprocess"]:
                    inputs = self.translator.process_input(ctx, input)
                with self.metrics["inference"]:
                    outputs = self.block.forward(call_manager, inputs)
                with self.metrics["postprocess"]:
                    return self.translator.process_output(ctx, outputs)

    def batch_predict(self, inputs: Iterable[I]) -> List[O]:
        """Predict a list of inputs.

        With a translator batchifier the inputs are stacked and run in a
        single call; otherwise each input is predicted in turn.
        """
        inputs = list(inputs)
        batchifier = getattr(self.translator, "batchifier", None)
        if batchifier is None or not inputs:
            with self._lock:
                self._check_open()
                return [self.predict(item) for item in inputs]

        with self._lock:
            self._check_open()
            self._ensure_prepared()
            with self.manager.new_sub_manager("batch_predict") as call_manager:
                ctx = self._context(call_manager)
                with self.metrics["preprocess"]:
                    batch = batchifier.batchify(
                        call_manager,
                        [self.translator.process_input(ctx, item) for item in inputs],
                    )
                with self.metrics["inference"]:
                    outputs = self.block.forward(call_manager, batch)
                with self.metrics["postprocess"]:
                    return [
                        self.translator.process_output(ctx, item)
                        for item in batchifier.unbatchify(call_manager, outputs)
                    ]

    def close(self) -> None:
        """Release the arena, its tensors and the native handle. Idempotent."""
        with self._lock:
            if self.state is PredictorState.CLOSED:
                return
            self.state = PredictorState.CLOSED
            logger.info("Closing predictor for model %s", getattr(self.model, "name", None))
            self.manager.close()

    def __enter__(self) -> "Predictor[I, O]":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Predictor(model={getattr(self.model, 'name', None)!r}, "
            f"device={self.device}, state={self.state.value})"
        )
