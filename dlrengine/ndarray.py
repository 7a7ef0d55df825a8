"""
Tensors and the hierarchical arenas that own them.

Every NDArray belongs to exactly one NDManager. Managers form a tree:
closing a manager closes its sub-managers first, then every resource
attached to it. Closing a sub-manager detaches it from its parent and
leaves the parent and siblings untouched.
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, Iterable, List, Optional

import numpy as np

from dlrengine.errors import ClosedResourceError
from dlrengine.utils import get_logger

logger = get_logger(__name__)

_uid = itertools.count()


class NDArray:
    """A named numpy payload allocated from an NDManager."""

    def __init__(
        self,
        data: np.ndarray,
        name: Optional[str] = None,
        manager: Optional[NDManager] = None,
    ):
        self._data: Optional[np.ndarray] = np.asarray(data)
        self.name = name
        self.manager = manager

    @property
    def is_closed(self) -> bool:
        return self._data is None

    def _check_open(self) -> np.ndarray:
        if self._data is None:
            raise ClosedResourceError(f"NDArray {self.name or ''} is closed".strip())
        return self._data

    @property
    def shape(self):
        return self._check_open().shape

    @property
    def dtype(self):
        return self._check_open().dtype

    @property
    def ndim(self) -> int:
        return self._check_open().ndim

    def to_numpy(self, copy: bool = False) -> np.ndarray:
        data = self._check_open()
        return data.copy() if copy else data

    def attach(self, manager: NDManager) -> None:
        """Move ownership of this array to another manager."""
        self._check_open()
        if self.manager is manager:
            return
        manager.attach(self)
        if self.manager is not None:
            self.manager.detach(self)
        self.manager = manager

    def close(self) -> None:
        if self._data is None:
            return
        self._data = None
        if self.manager is not None:
            self.manager.detach(self)

    def __array__(self, dtype=None, copy=None):
        data = self._check_open()
        return data if dtype is None else data.astype(dtype)

    def __repr__(self) -> str:
        if self._data is None:
            return f"NDArray(name={self.name!r}, closed)"
        return (
            f"NDArray(name={self.name!r}, shape={self._data.shape}, "
            f"dtype={self._data.dtype})"
        )


class NDList(list):
    """Ordered list of NDArrays, addressable by name."""

    def __init__(self, arrays: Iterable[NDArray] = ()):
        super().__init__(arrays)

    @property
    def names(self) -> List[Optional[str]]:
        return [arr.name for arr in self]

    def get(self, name: str) -> Optional[NDArray]:
        for arr in self:
            if arr.name == name:
                return arr
        return None

    def to_numpy(self, copy: bool = False) -> List[np.ndarray]:
        return [arr.to_numpy(copy=copy) for arr in self]

    def close(self) -> None:
        for arr in self:
            arr.close()


class NDManager:
    """Scoped allocation arena for tensors and native handles.

    Example:
        >>> root = NDManager("model")
        >>> with root.new_sub_manager("predict") as scratch:
        ...     x = scratch.create(np.ones(3), name="x")
        >>> x.is_closed
        True
    """

    def __init__(
        self,
        name: Optional[str] = None,
        parent: Optional[NDManager] = None,
        device=None,
    ):
        self.uid = next(_uid)
        self.name = name or f"manager-{self.uid}"
        self.parent = parent
        self.device = device
        self._children: Dict[int, NDManager] = {}
        self._resources: Dict[int, object] = {}
        self._closed = False
        self._lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return not self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedResourceError(f"NDManager '{self.name}' is closed")

    def new_sub_manager(self, name: Optional[str] = None, device=None) -> NDManager:
        """Create a child arena released together with this one."""
        with self._lock:
            self._check_open()
            child = NDManager(
                name=name, parent=self, device=device if device else self.device
            )
            self._children[child.uid] = child
        logger.debug("Created sub-manager '%s' under '%s'", child.name, self.name)
        return child

    def create(self, data, name: Optional[str] = None) -> NDArray:
        """Allocate an NDArray owned by this manager."""
        array = NDArray(data, name=name, manager=self)
        self.attach(array)
        return array

    def attach(self, resource) -> None:
        """Take ownership of any object exposing close()."""
        with self._lock:
            self._check_open()
            self._resources[id(resource)] = resource

    def detach(self, resource) -> None:
        with self._lock:
            self._resources.pop(id(resource), None)

    def _remove_child(self, child: NDManager) -> None:
        with self._lock:
            self._children.pop(child.uid, None)

    @property
    def children(self) -> List[NDManager]:
        with self._lock:
            return list(self._children.values())

    @property
    def resource_count(self) -> int:
        """Resources attached directly to this manager."""
        with self._lock:
            return len(self._resources)

    def total_resource_count(self) -> int:
        """Resources attached to this manager and all of its descendants."""
        with self._lock:
            children = list(self._children.values())
            count = len(self._resources)
        return count + sum(child.total_resource_count() for child in children)

    def close(self) -> None:
        """Release children, then attached resources. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            children = list(self._children.values())
            resources = list(self._resources.values())
            self._children.clear()
            self._resources.clear()

        first_error = None
        for child in children:
            try:
                child.close()
            except Exception as exc:
                logger.error("Failed to close sub-manager '%s': %s", child.name, exc)
                first_error = first_error or exc
        for resource in resources:
            try:
                resource.close()
            except Exception as exc:
                logger.error("Failed to release %r: %s", resource, exc)
                first_error = first_error or exc

        if self.parent is not None:
            self.parent._remove_child(self)

        logger.debug(
            "Closed manager '%s' (%d children, %d resources)",
            self.name,
            len(children),
            len(resources),
        )
        if first_error is not None:
            raise first_error

    def __enter__(self) -> NDManager:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"NDManager(name={self.name!r}, {state})"
