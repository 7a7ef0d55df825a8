# tests/test_device.py
import pytest
import torch

from dlrengine import Device


@pytest.mark.parametrize(
    "name,expected",
    [
        ("cpu", Device("cpu", 0)),
        ("CPU", Device("cpu", 0)),
        ("gpu", Device("gpu", 0)),
        ("gpu:2", Device("gpu", 2)),
        ("cuda", Device("gpu", 0)),
        ("cuda:1", Device("gpu", 1)),
    ],
)
def test_from_name(name, expected):
    assert Device.from_name(name) == expected


def test_from_name_passes_devices_through():
    device = Device.gpu(3)
    assert Device.from_name(device) is device


def test_auto_follows_cuda_availability():
    expected = Device.gpu(0) if torch.cuda.is_available() else Device.cpu()
    assert Device.from_name("auto") == expected
    assert Device.from_name(None) == expected


@pytest.mark.parametrize("name", ["tpu", "gpu:x"])
def test_invalid_names(name):
    with pytest.raises(ValueError):
        Device.from_name(name)


def test_invalid_fields():
    with pytest.raises(ValueError):
        Device("npu", 0)
    with pytest.raises(ValueError):
        Device("gpu", -1)


def test_immutable_and_hashable():
    device = Device.cpu()
    with pytest.raises(Exception):
        device.device_id = 1
    assert {Device.cpu(), Device.cpu(), Device.gpu(0)} == {Device.cpu(), Device.gpu(0)}


def test_to_torch():
    assert Device.cpu().to_torch() == torch.device("cpu")
    assert Device.gpu(1).to_torch() == torch.device("cuda", 1)
    assert str(Device.gpu(1)) == "gpu(1)"
