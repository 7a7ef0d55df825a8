import logging

# Add NullHandler to prevent logs when used as library
logging.getLogger(__name__).addHandler(logging.NullHandler())

"""
Bind natively loaded models to typed, translator-driven predictors.
"""

from .block import SymbolBlock
from .device import Device
from .engine import Engine, get_engine
from .errors import (
    ClosedResourceError,
    EngineException,
    RuntimeLoadError,
    TranslateException,
)
from .inference import ModelHandle, NativeRuntime, RuntimeType
from .model import Model
from .ndarray import NDArray, NDList, NDManager
from .predictor import Predictor, PredictorState
from .translate import (
    Batchifier,
    DictTranslator,
    NumpyTranslator,
    StackBatchifier,
    Translator,
    TranslatorContext,
)
from .utils import get_logger  # Export for users
from .utils import setup_logging  # Export for users who want to enable logging

__version__ = "0.1.0"
