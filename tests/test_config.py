# tests/test_config.py
import argparse
import json
import logging

import pytest
import yaml

from dlrengine.config import find_model_config, load_config, pick
from dlrengine.utils import (
    disable_logging,
    enable_logging,
    merge_config,
    save_config_to_yaml,
    setup_logging,
)


def test_load_yaml_and_json(tmp_path):
    (tmp_path / "a.yml").write_text(yaml.safe_dump({"device": "cpu"}))
    (tmp_path / "b.json").write_text(json.dumps({"device": "gpu"}))

    assert load_config(str(tmp_path / "a.yml")) == {"device": "cpu"}
    assert load_config(str(tmp_path / "b.json")) == {"device": "gpu"}
    assert load_config(None) == {}


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yml"))
    (tmp_path / "c.toml").write_text("")
    with pytest.raises(ValueError):
        load_config(str(tmp_path / "c.toml"))


def test_find_model_config(tmp_path):
    assert find_model_config(tmp_path) == {}
    (tmp_path / "config.yaml").write_text(yaml.safe_dump({"runtime": "onnx"}))
    assert find_model_config(tmp_path) == {"runtime": "onnx"}


def test_pick():
    assert pick(None, 0, 5) == 0
    assert pick(None, None) is None


def test_merge_config_cli_wins():
    args = argparse.Namespace(config="x.yml", device="gpu", runtime=None)
    merged = merge_config(args, {"device": "cpu", "runtime": "dlr"})
    assert merged == {"device": "gpu", "runtime": "dlr"}


def test_save_config_to_yaml(tmp_path):
    from easydict import EasyDict

    path = tmp_path / "out.yml"
    save_config_to_yaml(EasyDict({"model_dir": "m", "nested": {"a": 1}}), str(path))
    assert yaml.safe_load(path.read_text()) == {"model_dir": "m", "nested": {"a": 1}}


def test_logging_toggles(tmp_path):
    logger = setup_logging(enabled=False)
    assert logger.disabled

    log_file = tmp_path / "run.log"
    logger = setup_logging(
        enabled=True, log_level="DEBUG", log_to_file=True, log_file_path=str(log_file)
    )
    assert logger.level == logging.DEBUG
    assert log_file.exists()

    disable_logging()
    assert logging.getLogger("dlrengine").disabled
    enable_logging(level="WARNING")
    assert logging.getLogger("dlrengine").level == logging.WARNING
