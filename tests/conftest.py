# tests/conftest.py
"""
Pytest configuration and shared fixtures for dlrengine tests.
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pathlib import Path
from typing import Callable, Dict, List

import numpy as np
import pytest
import torch

from dlrengine import Device, Engine, Model, NumpyTranslator, Predictor
from dlrengine.inference.runtime.handle import ModelHandle

# ---------------------------------------------------------------------------
# Stub native runtime
# ---------------------------------------------------------------------------


class EchoBackend:
    """Stand-in for a native backend: every output is its input doubled."""

    backend_name = "echo"

    def __init__(self, input_names=("x",), output_names=("y",)):
        self.input_names: List[str] = list(input_names)
        self.output_names: List[str] = list(output_names)
        self.calls: List[Dict[str, np.ndarray]] = []
        self.close_count = 0
        self.fail_next_run = False

    def run(self, feeds):
        if self.fail_next_run:
            self.fail_next_run = False
            raise RuntimeError("native run failed")
        self.calls.append({k: np.array(v) for k, v in feeds.items()})
        return [np.asarray(feeds[name]) * 2 for name in self.input_names]

    def close(self):
        self.close_count += 1


class StubRuntime:
    """Runtime handing out EchoBackend handles; can be told to fail."""

    def __init__(self, backend_factory: Callable = EchoBackend, fail: bool = False):
        self.backend_factory = backend_factory
        self.fail = fail
        self.handles: List[ModelHandle] = []

    def create_model(self, model_dir, device):
        if self.fail:
            raise OSError(f"corrupt artifact in {model_dir}")
        handle = ModelHandle(self.backend_factory(), model_dir=model_dir, device=device)
        self.handles.append(handle)
        return handle


class Doubler(torch.nn.Module):
    def forward(self, x):
        return x * 2


# ---------------------------------------------------------------------------
# Fixtures: engine, runtime, model
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Engine:
    return Engine(name="test")


@pytest.fixture
def stub_runtime() -> StubRuntime:
    return StubRuntime()


@pytest.fixture
def runtime_id(engine, stub_runtime) -> int:
    return engine.register_runtime(stub_runtime)


@pytest.fixture
def model_dir(tmp_path: Path) -> Path:
    """Model directory with placeholder compiled artifacts."""
    path = tmp_path / "echo_model"
    path.mkdir()
    (path / "compiled.so").touch()
    (path / "compiled.params").touch()
    return path


@pytest.fixture
def model(engine):
    m = Model("echo", device="cpu", engine=engine)
    yield m
    m.close()


@pytest.fixture
def make_predictor(runtime_id, model, model_dir, engine):
    """Factory building predictors against the stub runtime."""

    def _factory(translator=None, device=None, directory=None):
        return Predictor(
            runtime_id,
            model,
            str(directory if directory is not None else model_dir),
            device if device is not None else Device.cpu(),
            translator if translator is not None else NumpyTranslator(),
            engine=engine,
        )

    return _factory


@pytest.fixture
def torchscript_model_dir(tmp_path: Path) -> Path:
    """Directory holding a scripted module that doubles its input."""
    path = tmp_path / "doubler_torchscript"
    path.mkdir()
    torch.jit.script(Doubler()).save(str(path / "model.pt"))
    return path
