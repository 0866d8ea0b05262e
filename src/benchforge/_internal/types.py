"""Shared type aliases for BenchForge."""

from __future__ import annotations

from typing import Literal

# HTTP headers dictionary.
Headers = dict[str, str]

# The only methods a run ever issues.
Method = Literal["GET", "POST"]
