# tests/test_ndarray.py
"""
Tests for the hierarchical tensor arenas.
"""
import numpy as np
import pytest

from dlrengine import ClosedResourceError, NDManager
from dlrengine.ndarray import NDList


class Closeable:
    def __init__(self):
        self.closed = 0

    def close(self):
        self.closed += 1


class TestNDManager:
    def test_create_attaches_array(self):
        manager = NDManager("root")
        arr = manager.create(np.arange(4), name="a")

        assert arr.manager is manager
        assert arr.shape == (4,)
        assert manager.resource_count == 1

    def test_closing_parent_closes_children_recursively(self):
        root = NDManager("root")
        child = root.new_sub_manager("child")
        grandchild = child.new_sub_manager("grandchild")
        arr = grandchild.create(np.ones(2))

        root.close()

        assert not child.is_open
        assert not grandchild.is_open
        assert arr.is_closed
        with pytest.raises(ClosedResourceError):
            arr.to_numpy()

    def test_closing_child_leaves_parent_and_siblings(self):
        root = NDManager("root")
        left = root.new_sub_manager("left")
        right = root.new_sub_manager("right")
        root_arr = root.create(np.zeros(1))
        right_arr = right.create(np.ones(1))

        left.close()

        assert root.is_open
        assert right.is_open
        assert root.children == [right]
        np.testing.assert_array_equal(root_arr.to_numpy(), [0])
        np.testing.assert_array_equal(right_arr.to_numpy(), [1])

    def test_close_is_idempotent(self):
        manager = NDManager()
        resource = Closeable()
        manager.attach(resource)

        manager.close()
        manager.close()

        assert resource.closed == 1

    def test_closed_manager_rejects_allocations(self):
        manager = NDManager("gone")
        manager.close()

        with pytest.raises(ClosedResourceError):
            manager.create(np.ones(1))
        with pytest.raises(ClosedResourceError):
            manager.new_sub_manager()

    def test_context_manager(self):
        root = NDManager("root")
        with root.new_sub_manager("scratch") as scratch:
            arr = scratch.create(np.ones(3))
        assert arr.is_closed
        assert root.children == []

    def test_total_resource_count(self):
        root = NDManager()
        root.create(np.ones(1))
        child = root.new_sub_manager()
        child.create(np.ones(1))
        child.create(np.ones(1))

        assert root.resource_count == 1
        assert root.total_resource_count() == 3

    def test_close_releases_everything_even_if_one_fails(self):
        class Broken:
            def close(self):
                raise RuntimeError("boom")

        manager = NDManager()
        good = Closeable()
        manager.attach(Broken())
        manager.attach(good)

        with pytest.raises(RuntimeError, match="boom"):
            manager.close()
        assert good.closed == 1
        assert not manager.is_open

    def test_sub_manager_inherits_device(self):
        root = NDManager(device="cpu(0)")
        assert root.new_sub_manager().device == "cpu(0)"


class TestNDArray:
    def test_close_detaches_from_manager(self):
        manager = NDManager()
        arr = manager.create(np.ones(2))

        arr.close()
        arr.close()

        assert manager.resource_count == 0

    def test_attach_moves_ownership(self):
        first = NDManager("first")
        second = NDManager("second")
        arr = first.create(np.ones(2))

        arr.attach(second)
        first.close()

        assert not arr.is_closed
        assert arr.manager is second
        assert second.resource_count == 1

    def test_array_protocol(self):
        manager = NDManager()
        arr = manager.create([1.0, 2.0])
        np.testing.assert_array_equal(np.asarray(arr), [1.0, 2.0])

    def test_to_numpy_copy(self):
        manager = NDManager()
        arr = manager.create(np.zeros(2))
        copy = arr.to_numpy(copy=True)
        manager.close()
        np.testing.assert_array_equal(copy, [0.0, 0.0])


class TestNDList:
    def test_lookup_by_name(self):
        manager = NDManager()
        items = NDList([manager.create(np.ones(1), name="a"), manager.create(np.zeros(1), name="b")])

        assert items.names == ["a", "b"]
        np.testing.assert_array_equal(items.get("b").to_numpy(), [0.0])
        assert items.get("missing") is None

    def test_close_all(self):
        manager = NDManager()
        items = NDList([manager.create(np.ones(1)), manager.create(np.ones(1))])
        items.close()
        assert manager.resource_count == 0
