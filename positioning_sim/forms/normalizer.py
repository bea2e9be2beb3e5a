"""Form fields (display units) to :class:`SimulationConfig` (SI units).

The form works in kilometres, milliseconds, fractions of the speed of
light and standard deviations; the engine wants metres, seconds and
variances.  :func:`normalize` is the single place where that conversion
happens.  It is pure: the same input always yields an equal config.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from ..config import DEFAULT_N_MEASUREMENTS
from ..core.config import SimulationConfig
from ..core.errors import ConfigValidationError, FieldError
from .fields import (
    DEFAULT_FORM_FIELDS, FIELDS, INTEGER, NUMBER, RANGE, STDDEV, FieldSpec,
    split_range_text,
)
from .legacy import canonical_name, canonicalize

logger = logging.getLogger(__name__)

_FIELD_ORDER = {f.name: i for i, f in enumerate(FIELDS)}


class _FieldProblem(Exception):
    """Internal signal carrying the per-field message."""


# ── Scalar parsing ───────────────────────────────────────────────────

def _parse_number(raw: Any) -> float:
    if isinstance(raw, bool):
        raise _FieldProblem("not a number")
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            raise _FieldProblem("not a number") from None
    else:
        raise _FieldProblem("not a number")
    if not math.isfinite(value):
        raise _FieldProblem("not a number")
    return value


def _check_limits(value: float, minimum: float | None, maximum: float | None,
                  exclusive_minimum: bool = False) -> None:
    if minimum is not None:
        if value < minimum or (exclusive_minimum and value == minimum):
            raise _FieldProblem("out of range")
    if maximum is not None and value > maximum:
        raise _FieldProblem("out of range")


def _split_range(raw: Any) -> tuple[Any, Any]:
    if isinstance(raw, str):
        items = split_range_text(raw)
    elif isinstance(raw, (list, tuple)):
        items = list(raw)
    else:
        raise _FieldProblem("expected [min, max]")
    if len(items) != 2:
        raise _FieldProblem("expected [min, max]")
    return items[0], items[1]


# ── Per-kind converters ──────────────────────────────────────────────

def _convert_field(spec: FieldSpec, raw: Any, minimum: float | None,
                   maximum: float | None) -> tuple[Any, ...]:
    """Return the converted value(s), one per entry of ``spec.targets``."""
    if spec.kind == RANGE:
        lo_raw, hi_raw = _split_range(raw)
        lo, hi = _parse_number(lo_raw), _parse_number(hi_raw)
        _check_limits(lo, minimum, maximum)
        _check_limits(hi, minimum, maximum)
        if lo > hi:
            raise _FieldProblem("min greater than max")
        return lo * spec.scale, hi * spec.scale

    value = _parse_number(raw)
    if spec.kind == INTEGER:
        if not value.is_integer():
            raise _FieldProblem("not an integer")
        _check_limits(value, minimum, maximum, spec.exclusive_minimum)
        return (int(value),) * len(spec.targets)

    if spec.kind == STDDEV:
        floor = 0.0 if minimum is None else max(minimum, 0.0)
        _check_limits(value, floor, maximum)
        variance = (value * spec.scale) ** 2
        return (variance,) * len(spec.targets)

    if spec.kind == NUMBER:
        _check_limits(value, minimum, maximum, spec.exclusive_minimum)
        return (value * spec.scale,) * len(spec.targets)

    raise ValueError(f"unknown field kind {spec.kind!r}")


def _convert(fields: Mapping[str, Any], n_measurements: int
             ) -> tuple[dict[str, Any], list[FieldError]]:
    canonical, errors = canonicalize(fields)
    already_failed = {e.field for e in errors}
    limits = {"nNodes": (n_measurements + 1, None)}

    values: dict[str, Any] = {}
    for spec in FIELDS:
        if spec.name in already_failed:
            continue
        raw = canonical.get(spec.name)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            if spec.required:
                errors.append(FieldError(spec.name, "required"))
                continue
            raw = spec.default
        minimum, maximum = limits.get(spec.name, (spec.minimum, spec.maximum))
        try:
            converted = _convert_field(spec, raw, minimum, maximum)
        except _FieldProblem as problem:
            errors.append(FieldError(spec.name, str(problem)))
            continue
        values.update(zip(spec.targets, converted))

    errors.sort(key=lambda e: _FIELD_ORDER.get(e.field, len(_FIELD_ORDER)))
    return values, errors


# ── Public API ───────────────────────────────────────────────────────

def validate(fields: Mapping[str, Any], *,
             n_measurements: int = DEFAULT_N_MEASUREMENTS) -> list[FieldError]:
    """Return every field error in *fields* without raising."""
    return _convert(fields, n_measurements)[1]


def normalize(fields: Mapping[str, Any], *,
              n_measurements: int = DEFAULT_N_MEASUREMENTS) -> SimulationConfig:
    """Convert display-unit form fields into a canonical config.

    Raises :class:`ConfigValidationError` listing every invalid field if
    any field fails; there is no partial result.
    """
    values, errors = _convert(fields, n_measurements)
    if errors:
        logger.info("form rejected: %d invalid field(s)", len(errors))
        raise ConfigValidationError(errors)
    return SimulationConfig(**values)


def with_defaults(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Fill every field not covered by *fields* (or a legacy alias) with its default."""
    covered = {canonical_name(k) for k in fields}
    merged: dict[str, Any] = dict(fields)
    for name, default in DEFAULT_FORM_FIELDS.items():
        if name not in covered:
            merged[name] = default
    return merged
