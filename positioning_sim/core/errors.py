"""Error taxonomy shared by the normalizer, the driver and the UI."""

from __future__ import annotations

from dataclasses import dataclass


class SimulationError(Exception):
    """Base class for every error raised by this package."""


@dataclass(frozen=True)
class FieldError:
    """A single invalid form field."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ConfigValidationError(SimulationError, ValueError):
    """Form input could not be normalized.

    Carries every field error found, not only the first, so a form can
    highlight all invalid inputs at once.
    """

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))

    def by_field(self) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        for err in self.errors:
            out.setdefault(err.field, []).append(err.message)
        return out


class EngineError(SimulationError):
    """The external estimation engine failed or returned a malformed payload."""


class SimulationBusyError(SimulationError):
    """A run was requested while another run is still in flight."""
