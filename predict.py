"""
Run a natively compiled model on tensors stored in .npy/.npz files.

Usage - runtimes:
    $ python predict.py --model_dir resnet50_dlr/ --input image.npy     # DLR (compiled .so + .params)
                                    resnet50_onnx/                       # ONNX Runtime
                                    resnet50_openvino/                   # OpenVINO
                                    resnet50_torchscript/                # TorchScript

An .npz input feeds named model inputs; an .npy input feeds a single
positional input. Outputs are written to <output_dir>/<run_name>/outputs.npz.
"""

import argparse
import os
import time
from pathlib import Path

import numpy as np
from easydict import EasyDict as edict

from dlrengine.config import find_model_config, load_config
from dlrengine.device import Device
from dlrengine.general import Profiler, determine_device, increment_path
from dlrengine.model import Model
from dlrengine.translate import NumpyTranslator
from dlrengine.utils import get_logger, merge_config, save_config_to_yaml, setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Run inference with a compiled model directory."
    )

    # Config file
    parser.add_argument(
        "--config", type=str, default=None, help="Path to config.yml/.json"
    )

    # Model parameters
    parser.add_argument(
        "--model_dir",
        type=str,
        default=None,
        help="Directory containing the compiled model artifacts.",
    )
    parser.add_argument(
        "--runtime",
        type=str,
        default=None,
        choices=["auto", "dlr", "onnx", "openvino", "torchscript"],
        help="Native runtime to load the model with (auto detects from artifacts)",
    )
    parser.add_argument(
        "--device",
        type=str,
        default=None,
        help="Device to run inference on: auto, cpu, gpu, gpu:<id> or cuda:<id>",
    )
    parser.add_argument(
        "--num_threads",
        type=int,
        default=None,
        help="Number of CPU threads for the runtime.",
    )

    # Data parameters
    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Input tensor file (.npy for one input, .npz for named inputs).",
    )
    parser.add_argument(
        "--output_dir",
        type=str,
        default=None,
        help="Directory to save outputs (default ./predictions).",
    )
    parser.add_argument(
        "--run_name",
        default=None,
        help="experiment name for this inference run",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        default=None,
        help="overwrite existing run directory without auto-incrementing",
    )

    # Benchmark parameters
    parser.add_argument(
        "--warmup_runs", type=int, default=None, help="Untimed runs before measuring."
    )
    parser.add_argument(
        "--benchmark_runs", type=int, default=None, help="Timed inference runs."
    )

    # Logging parameters
    parser.add_argument(
        "--log_level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level.",
    )

    return parser.parse_args(argv)


def load_inputs(path):
    """Read model inputs: a single array from .npy, named arrays from .npz."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.suffix.lower() == ".npy":
        return np.load(path)
    if path.suffix.lower() == ".npz":
        with np.load(path) as data:
            return {name: data[name] for name in data.files}
    raise ValueError("Input must be .npy or .npz")


def main(argv=None):
    args = parse_args(argv)

    if args.config is not None:
        cfg = load_config(str(args.config))
    elif args.model_dir is not None and os.path.isdir(args.model_dir):
        cfg = find_model_config(args.model_dir)
    else:
        cfg = {}

    # Merge config with CLI args
    config = edict(merge_config(args, cfg))

    setup_logging(enabled=True, log_level=config.log_level)
    logger = get_logger("dlrengine.predict")  # Force it into dlrengine hierarchy

    # Validation
    if not config.get("model_dir"):
        logger.error("model_dir is required (via --model_dir or config)")
        return 1

    if not config.get("input"):
        logger.error("input is required (via --input or config)")
        return 1

    profilers = {
        "setup": Profiler(),
        "model_loading": Profiler(),
        "warmup": Profiler(),
        "inference": Profiler(),
    }
    logger.info("Starting inference process")
    logger.info(f"Final config: {dict(config)}")

    total_start_time = time.time()

    with profilers["setup"]:
        model_dir = os.path.realpath(config.model_dir)
        if not os.path.exists(model_dir):
            logger.error(f"Model directory not found: {model_dir}")
            raise FileNotFoundError(f"Model directory not found: {model_dir}")

        device = Device.from_name(determine_device(config.get("device")))
        inputs = load_inputs(config.input)
        logger.info(f"Selected device: {device}")
        logger.info(f"Model directory: {model_dir}")

    options = {}
    if config.get("num_threads") is not None:
        options["num_threads"] = config.num_threads

    with profilers["model_loading"]:
        try:
            model = Model(config.get("name"), device=device).load(
                model_dir, runtime=config.get("runtime") or "auto", **options
            )
        except Exception as e:
            logger.error(f"Failed to load model: {e}")
            raise

    warmup_runs = int(config.get("warmup_runs") or 0)
    benchmark_runs = max(1, int(config.get("benchmark_runs") or 1))

    with model:
        with model.new_predictor(NumpyTranslator(as_dict=True)) as predictor:
            logger.info(
                "Predictor using %s backend, inputs=%s",
                predictor.block.backend_name,
                predictor.block.input_names,
            )

            with profilers["warmup"]:
                for _ in range(warmup_runs):
                    predictor.predict(inputs)
            if warmup_runs:
                logger.info("Warm-up done (%d runs).", warmup_runs)

            for run_idx in range(benchmark_runs):
                with profilers["inference"] as inference_prof:
                    outputs = predictor.predict(inputs)
                logger.debug(
                    f"Run {run_idx + 1}/{benchmark_runs} completed in {inference_prof.elapsed_time * 1000:.2f} ms"
                )

    results_path = increment_path(
        Path(config.get("output_dir") or "./predictions")
        / (config.get("run_name") or "predict_exp"),
        exist_ok=bool(config.get("overwrite")),
        mkdir=True,
    )
    np.savez(results_path / "outputs.npz", **outputs)
    save_config_to_yaml(config, str(results_path / "config.yml"))

    total_time = time.time() - total_start_time
    logger.info("=" * 60)
    logger.info("INFERENCE SUMMARY")
    logger.info("=" * 60)
    for name, value in outputs.items():
        logger.info(f"Output {name}: shape={value.shape}")
    logger.info(
        f"Model loading: {profilers['model_loading'].accumulated_time * 1000:.2f} ms"
    )
    logger.info(
        f"Inference: {profilers['inference'].get_avg_time_ms(benchmark_runs):.2f} ms/run over {benchmark_runs} runs"
    )
    logger.info(f"Throughput: {profilers['inference'].get_fps(benchmark_runs):.1f} runs/s")
    logger.info(f"Results saved to: {results_path}")
    logger.info(f"Total time: {total_time:.2f} s")
    logger.info("=" * 60)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
