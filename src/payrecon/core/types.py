"""Type aliases used across payrecon."""

from __future__ import annotations

from typing import Any

JsonDict = dict[str, Any]
RawRow = dict[str, str]
FieldMapping = dict[str, str]
