"""Socket helpers, line and data readers, string utilities and SHA-1."""

__version__ = "0.1.0"
__all__ = ["strings", "sha1", "tcp", "endpoint", "kisssocket"]