# inference/runtime/backends/base.py

"""
Abstract base protocol for native runtime backends.
"""

from __future__ import annotations

from typing import Dict, List, Protocol

import numpy as np

Feeds = Dict[str, np.ndarray]
Outputs = List[np.ndarray]


class InferenceBackend(Protocol):
    """Protocol for all native runtime backend classes."""

    input_names: List[str]
    output_names: List[str]
    backend_name: str

    def run(self, feeds: Feeds) -> Outputs:
        """Run the loaded model on named inputs, returning outputs in order."""
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...
