"""Synthetic training curves for the job simulator."""
from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional

import numpy as np

from ...config import (
    SIM_ACCURACY_NOISE,
    SIM_DEFAULT_EPOCHS,
    SIM_DEFAULT_STEPS_PER_EPOCH,
    SIM_LOSS_DECAY,
    SIM_LOSS_NOISE,
    SIM_LOSS_SCALE,
    SIM_MIN_TOTAL_STEPS,
)
from .models import MetricSample

logger = logging.getLogger(__name__)


def _numeric(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None if it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(out):
        return None
    return out


def _config_value(config: Mapping[str, Any], keys: tuple, default: int) -> float:
    for key in keys:
        if key not in config:
            continue
        value = _numeric(config[key])
        if value is None:
            logger.warning("Ignoring non-numeric %s=%r; using default %s", key, config[key], default)
            return float(default)
        return value
    return float(default)


def total_steps(config: Optional[Mapping[str, Any]]) -> int:
    """Number of ticks a job runs: ``max(epochs * stepsPerEpoch, SIM_MIN_TOTAL_STEPS)``.

    Missing or non-numeric ``epochs`` / ``stepsPerEpoch`` fall back to
    their defaults, as does a product too large to represent.  Fractional
    products round up.
    """
    config = config or {}
    epochs = _config_value(config, ("epochs",), SIM_DEFAULT_EPOCHS)
    steps_per_epoch = _config_value(
        config, ("stepsPerEpoch", "steps_per_epoch"), SIM_DEFAULT_STEPS_PER_EPOCH
    )
    product = epochs * steps_per_epoch
    if not math.isfinite(product):
        logger.warning(
            "epochs * stepsPerEpoch overflows (%r * %r); using defaults", epochs, steps_per_epoch
        )
        product = SIM_DEFAULT_EPOCHS * SIM_DEFAULT_STEPS_PER_EPOCH
    return max(math.ceil(product), SIM_MIN_TOTAL_STEPS)


def progress_for(step: int, total: int) -> int:
    """Integer percentage for ``step`` of ``total``, half-up rounded, capped at 100."""
    return min(int(math.floor(step / total * 100 + 0.5)), 100)


def make_sample(step: int, total: int, elapsed_ms: int, rng: np.random.Generator) -> MetricSample:
    """Fabricate one step's loss/accuracy.

    Loss decays as ``1.5 * exp(-3t)`` plus noise in ``[0, 0.05)``;
    accuracy climbs as ``0.5 + 0.5t`` plus noise in ``[-0.025, 0.025)``.
    """
    t = step / total
    loss = SIM_LOSS_SCALE * math.exp(-SIM_LOSS_DECAY * t) + rng.uniform(0.0, SIM_LOSS_NOISE)
    accuracy = 0.5 + 0.5 * t + rng.uniform(-SIM_ACCURACY_NOISE / 2, SIM_ACCURACY_NOISE / 2)
    return MetricSample(
        step=step,
        loss=round(float(loss), 4),
        accuracy=round(float(accuracy), 4),
        elapsed_ms=int(elapsed_ms),
    )
