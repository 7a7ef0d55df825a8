import contextlib
import time
from pathlib import Path

import torch


def increment_path(path, exist_ok=False, sep="", mkdir=False):
    p = Path(path)

    if exist_ok or not p.exists():
        if mkdir:
            (p if p.suffix == "" else p.parent).mkdir(parents=True, exist_ok=True)
        return p

    # path exists -> append 2,3,4,...
    base, suffix = (p.with_suffix(""), p.suffix) if p.is_file() else (p, "")
    i = 2
    while (base.parent / f"{base.name}{sep}{i}{suffix}").exists():
        i += 1
    newp = base.parent / f"{base.name}{sep}{i}{suffix}"

    if mkdir:
        (newp if suffix == "" else newp.parent).mkdir(parents=True, exist_ok=True)
    return newp


def determine_device(device_arg):
    """Determine the best device to use for inference"""
    if device_arg is None or device_arg == "auto":
        if torch.cuda.is_available():
            return "cuda"
        else:
            return "cpu"
    return device_arg


class Profiler(contextlib.ContextDecorator):
    """
    Performance profiler for accurate timing measurements.

    Synchronizes CUDA before reading the clock so GPU work launched inside
    the measured block is included.

    Example:
        profiler = Profiler()
        with profiler:
            predictor.predict(batch)
        print(f"Inference time: {profiler.elapsed_time * 1000:.2f} ms")
    """

    def __init__(self, accumulated_time=0.0):
        """
        Args:
            accumulated_time (float): Initial accumulated time in seconds
        """
        self.accumulated_time = accumulated_time
        self.elapsed_time = 0.0
        self.count = 0
        self.cuda_available = torch.cuda.is_available()
        self._start_time = 0.0

    def __enter__(self):
        self._start_time = self._get_precise_time()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.elapsed_time = self._get_precise_time() - self._start_time
        self.accumulated_time += self.elapsed_time
        self.count += 1

    def _get_precise_time(self):
        if self.cuda_available:
            torch.cuda.synchronize()
        return time.perf_counter()

    def reset(self):
        """Reset accumulated time counter."""
        self.accumulated_time = 0.0
        self.elapsed_time = 0.0
        self.count = 0

    def get_fps(self, num_samples):
        """
        Calculate throughput in samples per second.

        Args:
            num_samples (int): Number of samples processed

        Returns:
            float: samples/second based on accumulated time
        """
        if self.accumulated_time > 0:
            return num_samples / self.accumulated_time
        return 0.0

    def get_avg_time_ms(self, num_operations=None):
        """
        Get average time per operation in milliseconds.

        Args:
            num_operations (int): Number of operations performed. Defaults to
                the number of measured blocks.
        """
        if num_operations is None:
            num_operations = self.count
        if num_operations > 0:
            return (self.accumulated_time / num_operations) * 1000
        return 0.0
