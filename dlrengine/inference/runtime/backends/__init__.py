# inference/runtime/backends/__init__.py

"""
Native runtime backend implementations.

Backends are imported lazily by ``make_backend`` so that only the runtime
actually used needs to be installed.
"""

from .base import Feeds, InferenceBackend, Outputs

__all__ = [
    "Feeds",
    "InferenceBackend",
    "Outputs",
]
