"""Form field schema: display units, limits, defaults and help texts.

Every parameter the form exposes is declared once here.  The normalizer
reads this table to parse, validate and convert fields; the web UI reads
it to build inputs, titles and help popups.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

KM = 1000.0
MS = 0.001

INTEGER = "integer"
NUMBER = "number"
STDDEV = "stddev"
RANGE = "range"

RANGE_SEPARATOR = re.compile(r"[\s,;]+")


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of a single form field.

    Parameters
    ----------
    kind:
        ``integer``, ``number``, ``stddev`` or ``range``.
    scale:
        Factor from display units to SI units.  Standard deviations are
        scaled first and squared afterwards.
    targets:
        Canonical config attribute(s) receiving the converted value.  Range
        fields name the ``min`` and ``max`` targets in that order.
    minimum, maximum:
        Limits in *display* units, checked before conversion.
    """

    name: str
    kind: str
    targets: tuple[str, ...]
    default: str | tuple[str, str]
    title: str
    help: str = ""
    unit: str = ""
    scale: float = 1.0
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: bool = False
    required: bool = True
    step: float | None = None


FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(
        name="nNodes", kind=INTEGER, targets=("n_nodes",), default="100",
        title="Nodes", unit="count", minimum=2,
        help=(
            "The number of nodes taking part in the simulation.\n\n"
            "Each node asserts a position and measures distances to other "
            "nodes with time-of-flight pings.  More nodes improve accuracy "
            "and cost more to simulate.  The minimum is one more than the "
            "engine's measurement count."
        ),
    ),
    FieldSpec(
        name="nEpochs", kind=INTEGER, targets=("n_epochs",), default="100",
        title="Epochs", unit="count", minimum=1, maximum=10_000,
        help=(
            "How many times the position of every node is estimated.\n\n"
            "Each epoch is one round of distance measurements followed by "
            "an estimation step."
        ),
    ),
    FieldSpec(
        name="h3Resolution", kind=INTEGER, targets=("h3_resolution",), default="7",
        title="H3 Resolution", minimum=0, maximum=15,
        help="Resolution of the H3 grid nodes use when asserting a position.",
    ),
    FieldSpec(
        name="assertedPositionStddev", kind=STDDEV,
        targets=("asserted_position_variance",), default="1000",
        title="Position Honesty (σ km)", unit="km", scale=KM,
        minimum=0, maximum=10_000,
        help=(
            "Nodes may assert a position other than their true one.  "
            "Asserted positions are drawn from a normal distribution around "
            "the true position with this standard deviation."
        ),
    ),
    FieldSpec(
        name="betaRange", kind=RANGE, targets=("beta_min", "beta_max"),
        default=("0.2", "0.8"), title="β: Message Speed (% c)", unit="c",
        minimum=0, maximum=1, step=0.01,
        help=(
            "Range of per-node mean message speeds as a fraction of the "
            "speed of light.  Each node draws its speed uniformly from it.\n\n"
            "* IP networks: ~0.1c\n"
            "* fiber, copper: 0.66c\n"
            "* radio, microwave, laser: 0.99c"
        ),
    ),
    FieldSpec(
        name="betaStddev", kind=STDDEV, targets=("beta_variance",), default="0.001",
        title="Message Speed Std. Dev.", unit="c", minimum=0,
        help="Per-message noise added to a node's mean message speed.",
    ),
    FieldSpec(
        name="tauRange", kind=RANGE, targets=("tau_min", "tau_max"),
        default=("2", "30"), title="τ: Latency (ms)", unit="ms", scale=MS,
        minimum=0, maximum=100, step=0.001,
        help=(
            "Range of per-node mean processing latencies.  Each node draws "
            "its latency uniformly from it.\n\n"
            "* IP networks: 20-40 ms\n"
            "* high frequency trading: 0.001-0.01 ms"
        ),
    ),
    FieldSpec(
        name="tauStddev", kind=STDDEV, targets=("tau_variance",), default="1",
        title="Latency Std. Dev. (ms)", unit="ms", scale=MS, minimum=0,
        help="Per-message noise added to a node's mean latency.",
    ),
    FieldSpec(
        name="messageDistanceMax", kind=NUMBER, targets=("message_distance_max",),
        default="13000", title="Message Range (km)", unit="km", scale=KM,
        minimum=100, maximum=13_000,
        help=(
            "Nodes only reach other nodes within this range.  Use 13,000 km "
            "to let every node reach every other node."
        ),
    ),
    FieldSpec(
        name="modelPositionStddev", kind=STDDEV,
        targets=("kf_model_position_variance",), default="10",
        title="Estimator State Std. Dev. (km)", unit="km", scale=KM, minimum=0,
        help=(
            "State noise added to every estimated position at each epoch; "
            "controls how fast confidence decays between measurements."
        ),
    ),
    FieldSpec(
        name="modelBeta", kind=NUMBER, targets=("ls_model_beta", "kf_model_beta"),
        default="0.5", title="β: Model Msg Speed (% c)", unit="c",
        minimum=0, maximum=1, step=0.01,
        help=(
            "Initial estimate of every node's mean message speed.  Should "
            "lie inside the message speed range."
        ),
    ),
    FieldSpec(
        name="modelBetaStddev", kind=STDDEV, targets=("kf_model_beta_variance",),
        default="0.001", title="Model Message Speed Std. Dev. (% c)", unit="c",
        minimum=0,
        help="State noise of the estimated message speed.",
    ),
    FieldSpec(
        name="modelTau", kind=NUMBER, targets=("ls_model_tau", "kf_model_tau"),
        default="15", title="τ: Model Latency (ms)", unit="ms", scale=MS,
        minimum=0, maximum=100_000, step=0.001,
        help=(
            "Initial estimate of every node's mean latency.  Should lie "
            "inside the latency range."
        ),
    ),
    FieldSpec(
        name="modelTauStddev", kind=STDDEV, targets=("kf_model_tau_variance",),
        default="0.01", title="Model Latency Std. Dev. (ms)", unit="ms", scale=MS,
        minimum=0,
        help="State noise of the estimated latency.",
    ),
    FieldSpec(
        name="modelTofObservationStddev", kind=STDDEV,
        targets=("kf_model_tof_observation_variance",), default="1",
        title="Model Time-of-Flight Std. Dev. (ms)", unit="ms", scale=MS,
        minimum=0,
        help="Unmodelled noise expected on each time-of-flight measurement.",
    ),
    FieldSpec(
        name="leastSquaresIterations", kind=INTEGER, targets=("ls_iterations",),
        default="1", title="Least-Squares iterations per measurement",
        unit="count", minimum=1, maximum=100,
        help="Least-squares passes run after each set of distance measurements.",
    ),
    FieldSpec(
        name="leastSquaresTolerance", kind=NUMBER, targets=("ls_tolerance",),
        default="1", title="Least-Squares tolerance (m)", unit="m",
        minimum=0, exclusive_minimum=True, required=False,
        help="Convergence tolerance of the least-squares solver.",
    ),
)

FIELDS_BY_NAME: dict[str, FieldSpec] = {f.name: f for f in FIELDS}

# Shown read-only; fixed when the engine is built.
READ_ONLY_FIELDS = ("nMeasurements",)

DEFAULT_FORM_FIELDS: dict[str, str | tuple[str, str]] = {
    f.name: f.default for f in FIELDS
}


def split_range_text(raw: str) -> list[str]:
    """Split a typed range such as ``"0.2, 0.8"`` or ``"[2 30]"`` into its parts."""
    return [p for p in RANGE_SEPARATOR.split(raw.strip().strip("[]()")) if p]
