"""Exception types raised by dlrengine.

Loading failures, use-after-close and translation failures each get their
own class so callers can tell them apart; all derive from EngineException.
"""


class EngineException(RuntimeError):
    """Base class for errors raised by the engine or a native runtime."""


class RuntimeLoadError(EngineException):
    """The native runtime could not create a model handle.

    Raised for unknown runtime ids, missing model directories, missing
    runtime libraries and corrupt or incompatible artifacts.
    """


class ClosedResourceError(EngineException):
    """An operation was attempted on a released predictor, handle or tensor."""


class TranslateException(EngineException):
    """A translator could not convert an input or an output."""


def is_missing_runtime_error(e: BaseException) -> bool:
    """
    Check if an exception (or its cause) is a missing runtime library.

    Example:
        >>> try:
        ...     predictor = model.new_predictor(translator)
        ... except RuntimeLoadError as e:
        ...     if is_missing_runtime_error(e):
        ...         print("install the runtime extra")
    """
    while e is not None:
        if isinstance(e, ImportError):
            return True
        e = e.__cause__
    return False
