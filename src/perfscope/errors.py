"""Exception hierarchy for the engine's outward-facing operations."""

from __future__ import annotations


class PerfscopeError(Exception):
    pass


class HarExportError(PerfscopeError):
    """Writing a HAR document to its destination failed.

    The in-memory session is never modified by an export, so callers can retry
    with another destination.
    """

    def __init__(self, destination: str, reason: str) -> None:
        self.destination = destination
        super().__init__(f"Failed to export HAR to '{destination}': {reason}")


class HarImportError(PerfscopeError):
    pass


class UnknownBudgetPresetError(ValueError):
    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(f"Unknown budget preset '{name}'. Available: {', '.join(available)}")
