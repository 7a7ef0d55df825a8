"""
Translators convert application values to tensors and back.

A Translator is shared read-only between predictors. All tensors it
creates come from ``ctx.manager``, the per-call arena that the predictor
closes once the call returns, so anything returned from process_output
must be copied out of it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Generic, List, Mapping, Optional, TypeVar

import numpy as np

from dlrengine.errors import TranslateException
from dlrengine.ndarray import NDList, NDManager

if TYPE_CHECKING:
    from dlrengine.block import SymbolBlock
    from dlrengine.model import Model

I = TypeVar("I")
O = TypeVar("O")


@dataclass
class TranslatorContext:
    model: "Model"
    block: "SymbolBlock"
    manager: NDManager
    attachments: Dict[str, Any] = field(default_factory=dict)


class Batchifier(ABC):
    """Combines per-item NDLists into one batch and splits results back."""

    @abstractmethod
    def batchify(self, manager: NDManager, inputs: List[NDList]) -> NDList:
        ...

    @abstractmethod
    def unbatchify(self, manager: NDManager, batch: NDList) -> List[NDList]:
        ...


class StackBatchifier(Batchifier):
    """Stacks the i-th array of every item along a new leading axis."""

    def batchify(self, manager: NDManager, inputs: List[NDList]) -> NDList:
        width = len(inputs[0])
        if any(len(item) != width for item in inputs):
            raise TranslateException("All batch items must have the same number of arrays")
        try:
            return NDList(
                manager.create(
                    np.stack([item[i].to_numpy() for item in inputs]),
                    name=inputs[0][i].name,
                )
                for i in range(width)
            )
        except ValueError as exc:
            raise TranslateException(f"Cannot stack batch items: {exc}") from exc

    def unbatchify(self, manager: NDManager, batch: NDList) -> List[NDList]:
        if not batch:
            return []
        if any(arr.ndim == 0 for arr in batch):
            raise TranslateException("Cannot unbatchify a scalar output")
        size = batch[0].shape[0]
        if any(arr.shape[0] != size for arr in batch):
            raise TranslateException("Batch outputs disagree on the batch dimension")
        return [
            NDList(manager.create(arr.to_numpy()[j], name=arr.name) for arr in batch)
            for j in range(size)
        ]


class Translator(ABC, Generic[I, O]):
    """Converts an input of type I into tensors and tensors into an O."""

    batchifier: Optional[Batchifier] = None

    def prepare(self, ctx: TranslatorContext) -> None:
        """Called once per predictor, before the first call."""

    @abstractmethod
    def process_input(self, ctx: TranslatorContext, input: I) -> NDList:
        ...

    @abstractmethod
    def process_output(self, ctx: TranslatorContext, outputs: NDList) -> O:
        ...


class NumpyTranslator(Translator[Any, Any]):
    """Arrays in, arrays out.

    Accepts a single array, a sequence of arrays (positional inputs) or a
    mapping of input name to array. Returns a list of arrays, or a dict
    keyed by output name when ``as_dict`` is set.
    """

    def __init__(
        self,
        dtype=None,
        as_dict: bool = False,
        batchifier: Optional[Batchifier] = None,
    ):
        self.dtype = dtype
        self.as_dict = as_dict
        self.batchifier = batchifier

    def _array(self, value) -> np.ndarray:
        try:
            return np.asarray(value, dtype=self.dtype)
        except (TypeError, ValueError) as exc:
            raise TranslateException(f"Cannot convert {type(value).__name__} to array: {exc}") from exc

    def process_input(self, ctx: TranslatorContext, input) -> NDList:
        if isinstance(input, Mapping):
            return NDList(
                ctx.manager.create(self._array(v), name=k) for k, v in input.items()
            )
        if isinstance(input, (list, tuple)):
            return NDList(ctx.manager.create(self._array(v)) for v in input)
        return NDList([ctx.manager.create(self._array(input))])

    def process_output(self, ctx: TranslatorContext, outputs: NDList):
        if self.as_dict:
            return {arr.name: arr.to_numpy(copy=True) for arr in outputs}
        return outputs.to_numpy(copy=True)


class DictTranslator(Translator[Mapping[str, Any], Dict[str, Any]]):
    """Maps ``{input_name: value}`` to ``{output_field: value}``.

    Example:
        >>> translator = DictTranslator(output_map={"prob": "score"})
        >>> predictor.predict({"data": [1.0, 2.0]})
        {'score': 0.73}
    """

    def __init__(
        self,
        output_map: Optional[Mapping[str, str]] = None,
        dtype=np.float32,
        unwrap_scalars: bool = True,
    ):
        self.output_map = dict(output_map or {})
        self.dtype = dtype
        self.unwrap_scalars = unwrap_scalars

    def process_input(self, ctx: TranslatorContext, input) -> NDList:
        if not isinstance(input, Mapping):
            raise TranslateException(
                f"DictTranslator expects a mapping, got {type(input).__name__}"
            )
        arrays = NDList()
        for name, value in input.items():
            try:
                data = np.asarray(value, dtype=self.dtype)
            except (TypeError, ValueError) as exc:
                raise TranslateException(f"Invalid value for input '{name}': {exc}") from exc
            arrays.append(ctx.manager.create(data, name=name))
        return arrays

    def process_output(self, ctx: TranslatorContext, outputs: NDList) -> Dict[str, Any]:
        result = {}
        for arr in outputs:
            data = arr.to_numpy()
            value = data.item() if self.unwrap_scalars and data.size == 1 else data.copy()
            result[self.output_map.get(arr.name, arr.name)] = value
        return result
