from .runtime import ModelHandle, NativeRuntime, make_backend
from .runtimeType import RuntimeType

__all__ = ["ModelHandle", "NativeRuntime", "RuntimeType", "make_backend"]
