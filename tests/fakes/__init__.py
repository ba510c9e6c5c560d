"""Shared test doubles: re-export memory backends."""

from __future__ import annotations

from payrecon.persistence.memory_backend import (
    MemoryCacheBackend,
    MemoryFileStore,
    MemoryPaymentPlatform,
    MemoryTemplateStore,
    MemoryVendorRegistry,
)

__all__ = [
    "MemoryCacheBackend",
    "MemoryFileStore",
    "MemoryPaymentPlatform",
    "MemoryTemplateStore",
    "MemoryVendorRegistry",
]
