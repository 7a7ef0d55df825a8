# tests/test_runtime_type.py
"""
Tests for runtime detection from model artifacts.
"""
import pytest

from dlrengine.inference.runtimeType import RuntimeType, find_artifact


class TestRuntimeType:
    @pytest.mark.parametrize(
        "filename,expected_type",
        [
            ("model.onnx", RuntimeType.ONNX),
            ("model.xml", RuntimeType.OPENVINO),
            ("model.pt", RuntimeType.TORCHSCRIPT),
            ("model.pts", RuntimeType.TORCHSCRIPT),
            ("model.torchscript", RuntimeType.TORCHSCRIPT),
        ],
    )
    def test_file_extension_detection(self, filename, expected_type):
        assert RuntimeType.from_path(filename) == expected_type

    def test_invalid_extension(self):
        with pytest.raises(ValueError, match="Unsupported model format"):
            RuntimeType.from_path("model.invalid")

    @pytest.mark.parametrize(
        "files,expected_type",
        [
            (["compiled.so", "compiled.params", "compiled_model.json"], RuntimeType.DLR),
            (["compiled.dylib", "compiled.meta"], RuntimeType.DLR),
            (["model.onnx"], RuntimeType.ONNX),
            (["model.xml", "model.bin"], RuntimeType.OPENVINO),
            (["model.pt"], RuntimeType.TORCHSCRIPT),
        ],
    )
    def test_directory_detection(self, tmp_path, files, expected_type):
        for name in files:
            (tmp_path / name).touch()
        assert RuntimeType.from_path(str(tmp_path)) == expected_type

    def test_library_without_sidecar_is_not_dlr(self, tmp_path):
        (tmp_path / "libsomething.so").touch()
        with pytest.raises(ValueError, match="doesn't contain a loadable model"):
            RuntimeType.from_path(str(tmp_path))

    def test_from_name(self):
        assert RuntimeType.from_name("DLR") is RuntimeType.DLR
        with pytest.raises(ValueError, match="Unknown runtime"):
            RuntimeType.from_name("tflite")


def test_find_artifact(tmp_path):
    (tmp_path / "b.onnx").touch()
    (tmp_path / "a.onnx").touch()
    (tmp_path / "notes.txt").touch()

    assert find_artifact(str(tmp_path), (".onnx",)).endswith("a.onnx")
    assert find_artifact(str(tmp_path / "b.onnx"), (".onnx",)).endswith("b.onnx")
    with pytest.raises(FileNotFoundError):
        find_artifact(str(tmp_path), (".pt",))
