"""
SymbolBlock: the executable graph of a natively loaded model.
"""

from __future__ import annotations

from typing import Dict, List

import numpy as np

from dlrengine.errors import EngineException
from dlrengine.inference.runtime.handle import ModelHandle
from dlrengine.ndarray import NDList, NDManager
from dlrengine.utils import get_logger

logger = get_logger(__name__)


class SymbolBlock:
    """Callable wrapper around a ModelHandle.

    Inputs are matched to the model's inputs by NDArray name when every
    array carries a known name, and by position otherwise. Outputs are
    allocated from the manager passed to forward().
    """

    def __init__(self, handle: ModelHandle):
        self.handle = handle

    @property
    def is_closed(self) -> bool:
        return self.handle.is_released

    @property
    def input_names(self) -> List[str]:
        return self.handle.input_names

    @property
    def output_names(self) -> List[str]:
        return self.handle.output_names

    @property
    def backend_name(self) -> str:
        return self.handle.backend_name

    def _feeds(self, inputs: NDList) -> Dict[str, np.ndarray]:
        expected = self.handle.input_names
        if len(inputs) != len(expected):
            raise EngineException(
                f"Model expects {len(expected)} inputs {expected}, got {len(inputs)}"
            )
        if all(arr.name in expected for arr in inputs):
            return {arr.name: arr.to_numpy() for arr in inputs}
        return {name: arr.to_numpy() for name, arr in zip(expected, inputs)}

    def forward(self, manager: NDManager, inputs: NDList) -> NDList:
        feeds = self._feeds(inputs)
        logger.debug(
            "Running %s block with inputs %s",
            self.handle.backend_name,
            {name: arr.shape for name, arr in feeds.items()},
        )
        outputs = self.handle.run(feeds)

        names = self.handle.output_names
        return NDList(
            manager.create(out, name=names[i] if i < len(names) else f"output{i}")
            for i, out in enumerate(outputs)
        )

    __call__ = forward

    def close(self) -> None:
        self.handle.release()

    def __repr__(self) -> str:
        return f"SymbolBlock({self.handle!r})"
