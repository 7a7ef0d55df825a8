# tests/test_model.py
"""
Tests for model loading and configuration.
"""
import json

import pytest
import yaml

from dlrengine import (
    DictTranslator,
    EngineException,
    Model,
    NativeRuntime,
    RuntimeLoadError,
    RuntimeType,
)

from conftest import EchoBackend, StubRuntime


def test_load_with_runtime_object(engine, model_dir):
    runtime = StubRuntime()
    model = Model("echo", device="cpu", engine=engine).load(model_dir, runtime=runtime)

    assert model.is_loaded
    assert engine.get_runtime(model.runtime_id) is runtime
    with model.new_predictor(DictTranslator()) as predictor:
        assert predictor.predict({"x": 3.0}) == {"y": 6.0}
    model.close()


def test_name_defaults_to_directory(engine, model_dir):
    model = Model(engine=engine).load(model_dir, runtime=StubRuntime())
    assert model.name == "echo_model"
    assert model.manager.name == "model:echo_model"
    model.close()


def test_auto_detects_native_runtime(engine, model_dir):
    model = Model(engine=engine).load(model_dir)

    runtime = engine.get_runtime(model.runtime_id)
    assert isinstance(runtime, NativeRuntime)
    assert runtime.runtime_type is RuntimeType.DLR
    model.close()


def test_config_file_is_merged(engine, model_dir):
    (model_dir / "config.yml").write_text(
        yaml.safe_dump({"name": "from_config", "num_threads": 2, "runtime": "dlr"})
    )

    model = Model(engine=engine).load(model_dir, num_threads=8)

    runtime = engine.get_runtime(model.runtime_id)
    assert model.name == "from_config"
    assert model.properties["num_threads"] == 8
    assert runtime.options == {"num_threads": 8}
    model.close()


def test_json_config(engine, model_dir):
    (model_dir / "config.json").write_text(json.dumps({"cpu_affinity": False}))

    model = Model("m", engine=engine).load(model_dir)

    assert engine.get_runtime(model.runtime_id).options == {"cpu_affinity": False}
    model.close()


def test_missing_directory(engine, tmp_path):
    with pytest.raises(RuntimeLoadError, match="not found"):
        Model("m", engine=engine).load(tmp_path / "nope")


def test_unrecognized_directory(engine, tmp_path):
    with pytest.raises(RuntimeLoadError):
        Model("m", engine=engine).load(tmp_path)
    assert engine.runtime_ids == []


def test_load_twice(engine, model_dir):
    model = Model("m", engine=engine).load(model_dir, runtime=StubRuntime())
    with pytest.raises(EngineException, match="already loaded"):
        model.load(model_dir)
    model.close()


def test_new_predictor_requires_load(engine):
    with pytest.raises(EngineException, match="not been loaded"):
        Model("m", engine=engine).new_predictor(DictTranslator())


def test_close_unregisters_runtime(engine, model_dir):
    with Model("m", engine=engine).load(model_dir, runtime=StubRuntime()) as model:
        runtime_id = model.runtime_id
    assert runtime_id not in engine.runtime_ids
    assert not model.manager.is_open


def test_close_unregisters_runtime_when_release_fails(engine, model_dir):
    class FailingRelease(EchoBackend):
        def close(self):
            raise OSError("device lost")

    model = Model("m", device="cpu", engine=engine).load(
        model_dir, runtime=StubRuntime(FailingRelease)
    )
    model.new_predictor(DictTranslator())

    with pytest.raises(OSError, match="device lost"):
        model.close()

    assert model.runtime_id not in engine.runtime_ids
    assert not model.manager.is_open
