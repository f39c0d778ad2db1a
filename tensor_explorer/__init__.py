"""Read safetensors and GGUF model files and browse their tensors in the terminal."""

__version__ = "0.1.1"