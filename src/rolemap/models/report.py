"""Migration readiness models."""

from __future__ import annotations

from enum import Enum


class Verdict(str, Enum):
    READY = "READY"
    PARTIAL = "PARTIAL"
    BLOCKED = "BLOCKED"
