from .handle import ModelHandle
from .wrapper import NativeRuntime, make_backend

__all__ = ["ModelHandle", "NativeRuntime", "make_backend"]
