"""Adapters for earlier parameter-form schemas.

Older forms used snake_case names, and the first generation used a
different vocabulary (``realChannelSpeedMin`` for the lower message speed
bound, ``modelNodeLatency`` for the model latency, ...).  Every such name
is mapped onto the current field table here, before normalization, so no
code downstream of the normalizer ever sees a legacy schema.

Only names whose display unit matches the current field are aliased.
Legacy parameters with no counterpart in the current model are dropped.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from ..core.errors import FieldError
from .fields import FIELDS_BY_NAME, READ_ONLY_FIELDS, split_range_text

logger = logging.getLogger(__name__)

ALIASES: dict[str, str] = {
    # snake_case generation
    "n_nodes": "nNodes",
    "n_epochs": "nEpochs",
    "n_measurements": "nMeasurements",
    "h3_resolution": "h3Resolution",
    "asserted_position_stddev": "assertedPositionStddev",
    "beta_range": "betaRange",
    "beta_stddev": "betaStddev",
    "tau_range": "tauRange",
    "tau_stddev": "tauStddev",
    "message_distance_max": "messageDistanceMax",
    "model_position_stddev": "modelPositionStddev",
    "model_beta": "modelBeta",
    "model_beta_stddev": "modelBetaStddev",
    "model_tau": "modelTau",
    "model_tau_stddev": "modelTauStddev",
    "model_tof_observation_stddev": "modelTofObservationStddev",
    "least_squares_iterations": "leastSquaresIterations",
    "least_squares_tolerance": "leastSquaresTolerance",
    # channel/latency vocabulary
    "channel_speed_range": "betaRange",
    "latency_range": "tauRange",
    "modelSignalSpeedFraction": "modelBeta",
    "modelNodeLatency": "modelTau",
}

# Legacy split bounds: name -> (range field, 0 for min / 1 for max)
RANGE_PARTS: dict[str, tuple[str, int]] = {
    "realChannelSpeedMin": ("betaRange", 0),
    "realChannelSpeedMax": ("betaRange", 1),
    "channel_speed_min": ("betaRange", 0),
    "channel_speed_max": ("betaRange", 1),
    "realLatencyMin": ("tauRange", 0),
    "realLatencyMax": ("tauRange", 1),
    "latency_min": ("tauRange", 0),
    "latency_max": ("tauRange", 1),
}

# No counterpart in the current model.
DISCARDED = frozenset({
    "modelStateNoiseScale",
    "modelMeasurementVariance",
    "modelDistanceMax",
})


def canonical_name(key: str) -> str | None:
    """Current field name for *key*, or ``None`` if it maps to nothing."""
    if key in FIELDS_BY_NAME or key in READ_ONLY_FIELDS:
        return key
    if key in ALIASES:
        return ALIASES[key]
    if key in RANGE_PARTS:
        return RANGE_PARTS[key][0]
    return None


def _scalar(text: str) -> Any:
    try:
        number = float(text)
    except ValueError:
        return text
    return number if math.isfinite(number) else text


def _comparable(value: Any) -> Any:
    """Key under which two spellings of the same value compare equal."""
    if isinstance(value, str):
        parts = split_range_text(value)
        if len(parts) > 1:
            return tuple(_scalar(p) for p in parts)
        return _scalar(value.strip())
    if isinstance(value, (list, tuple)):
        return tuple(_comparable(v) for v in value)
    return _scalar(str(value).strip())


def canonicalize(fields: Mapping[str, Any]) -> tuple[dict[str, Any], list[FieldError]]:
    """Rename legacy keys to current field names.

    Returns the renamed mapping and any errors found while merging
    (conflicting duplicates, half-specified split ranges).
    """
    candidates: dict[str, list[tuple[str, Any]]] = {}
    parts: dict[str, dict[int, Any]] = {}

    for key, value in fields.items():
        if key in FIELDS_BY_NAME or key in READ_ONLY_FIELDS:
            candidates.setdefault(key, []).append((key, value))
        elif key in ALIASES:
            target = ALIASES[key]
            logger.debug("legacy field %r read as %r", key, target)
            candidates.setdefault(target, []).append((key, value))
        elif key in RANGE_PARTS:
            target, idx = RANGE_PARTS[key]
            parts.setdefault(target, {})[idx] = value
        elif key in DISCARDED:
            logger.warning("legacy field %r has no counterpart and is ignored", key)
        else:
            logger.debug("unknown form field %r ignored", key)

    errors: list[FieldError] = []
    for target, bounds in parts.items():
        if set(bounds) != {0, 1}:
            errors.append(FieldError(target, "expected [min, max]"))
            continue
        candidates.setdefault(target, []).append((target, (bounds[0], bounds[1])))

    result: dict[str, Any] = {}
    for target, values in candidates.items():
        distinct = {_comparable(v) for _, v in values}
        if len(distinct) > 1:
            sources = ", ".join(src for src, _ in values)
            logger.debug("conflicting values for %r from %s", target, sources)
            errors.append(FieldError(target, "conflicting values"))
            continue
        result[target] = values[0][1]
    return result, errors
