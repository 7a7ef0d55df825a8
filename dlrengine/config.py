# dlrengine/config.py
import json
from pathlib import Path

import yaml

CONFIG_FILENAMES = ("config.yml", "config.yaml", "config.json")


def load_config(path: str = None):
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    if p.suffix.lower() in {".yml", ".yaml"}:
        return yaml.safe_load(p.read_text()) or {}
    if p.suffix.lower() == ".json":
        return json.loads(p.read_text())
    raise ValueError("Config must be .yml/.yaml or .json")


def find_model_config(model_dir) -> dict:
    # first config file found inside a model directory, or {}
    model_dir = Path(model_dir)
    for filename in CONFIG_FILENAMES:
        candidate = model_dir / filename
        if candidate.is_file():
            return load_config(str(candidate))
    return {}


def pick(*vals):
    # first non-None
    for v in vals:
        if v is not None:
            return v
    return None
