"""Canonical simulation configuration (SI units, variances)."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class SimulationConfig:
    """Engine-facing configuration.

    Distances are metres, times are seconds, message speeds are fractions
    of the speed of light.  Every noise term is a variance.  Instances are
    built by :func:`positioning_sim.forms.normalizer.normalize` and never
    mutated afterwards.
    """

    n_nodes: int
    n_epochs: int
    h3_resolution: int
    # physical parameters
    asserted_position_variance: float
    beta_min: float
    beta_max: float
    beta_variance: float
    tau_min: float
    tau_max: float
    tau_variance: float
    message_distance_max: float
    # least-squares model
    ls_model_beta: float
    ls_model_tau: float
    ls_tolerance: float
    ls_iterations: int
    # refinement (Kalman) model
    kf_model_position_variance: float
    kf_model_beta: float
    kf_model_beta_variance: float
    kf_model_tau: float
    kf_model_tau_variance: float
    kf_model_tof_observation_variance: float

    def __post_init__(self) -> None:
        if self.beta_min > self.beta_max:
            raise ValueError("beta_min must not exceed beta_max")
        if self.tau_min > self.tau_max:
            raise ValueError("tau_min must not exceed tau_max")

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping handed to the engine's ``initialize``."""
        return asdict(self)
