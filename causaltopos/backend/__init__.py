"""Numeric backend helpers."""

from .buffers import BufferPool

__all__ = ["BufferPool"]
