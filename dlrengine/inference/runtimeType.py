import os
from enum import Enum

_DLR_LIBRARY_EXTENSIONS = (".so", ".dylib", ".dll")
_DLR_SIDECAR_EXTENSIONS = (".params", ".meta")


class RuntimeType(Enum):
    DLR = "dlr"
    ONNX = "onnx"
    OPENVINO = "openvino"
    TORCHSCRIPT = "torchscript"

    @classmethod
    def from_name(cls, name):
        try:
            return cls(name.lower())
        except ValueError:
            raise ValueError(
                f"Unknown runtime: {name}. Supported: {[t.value for t in cls]}"
            ) from None

    @classmethod
    def from_path(cls, model_path):
        """Determine runtime type from a model directory's artifacts or a file extension"""

        if os.path.isdir(model_path):
            files = os.listdir(model_path)
            extensions = {os.path.splitext(f)[1].lower() for f in files}

            # Compiled DLR models ship a shared library next to params/meta files
            if extensions.intersection(_DLR_LIBRARY_EXTENSIONS) and (
                extensions.intersection(_DLR_SIDECAR_EXTENSIONS)
            ):
                return cls.DLR
            if ".onnx" in extensions:
                return cls.ONNX
            if ".xml" in extensions:
                return cls.OPENVINO
            if extensions.intersection({".pt", ".pts", ".torchscript"}):
                return cls.TORCHSCRIPT
            raise ValueError(f"Directory {model_path} doesn't contain a loadable model")

        extension_map = {
            ".onnx": cls.ONNX,
            ".xml": cls.OPENVINO,
            ".pt": cls.TORCHSCRIPT,
            ".pts": cls.TORCHSCRIPT,
            ".torchscript": cls.TORCHSCRIPT,
        }

        ext = os.path.splitext(model_path)[1].lower()
        runtime_type = extension_map.get(ext)

        if runtime_type is None:
            raise ValueError(
                f"Unsupported model format: {ext}. Supported: {list(extension_map.keys())} or model directories"
            )

        return runtime_type


def find_artifact(model_path, extensions):
    """Return model_path itself if it is a file, else the first matching file inside it."""
    if os.path.isfile(model_path):
        return model_path
    for filename in sorted(os.listdir(model_path)):
        if os.path.splitext(filename)[1].lower() in extensions:
            return os.path.join(model_path, filename)
    raise FileNotFoundError(
        f"No model file with extension {list(extensions)} found in {model_path}"
    )
