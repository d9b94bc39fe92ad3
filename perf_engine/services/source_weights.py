"""
Source Weight Estimation Service.

Estimates, for every lead source, the expected units produced per lead by
pooling signal across the whole rep population. The model is linear:

    units_rep ~ sum over sources of leads_rep[source] * weight[source]

and is fitted by iterative proportional scaling rather than least squares,
which keeps every weight non-negative and bounded without a constrained solver.

Algorithm:
    1. global_rate = total units / total leads (0 without leads); every source
       observed in any lead mix starts at global_rate.
    2. Each iteration:
       - predicted_rep = sum(leads * weight); reps with predicted <= 0 are skipped
       - scale_rep = units_sold / predicted_rep
       - per source: numerator = sum(leads * scale), denominator = sum(leads)
       - denominator > 0: weight <- weight * numerator / denominator, shrunk toward
         global_rate with prior_strength pseudo-leads, then clamped to
         [min_weight, max_weight]
       - denominator == 0: weight <- global_rate
    3. The weights after the final iteration are the estimate.

There is no proven fixed point; the iteration count is a tuned constant
(default 6). iterate_source_weights() exposes the per-iteration weights so
stability can be checked on representative data.

Trailing window:
    select_weight_window() keeps rows whose period_end lies within
    weights_window_days of an as_of date, so weights can be estimated from
    recent history instead of a single snapshot.

Dependencies:
    - numpy: lead matrix products for the per-iteration accumulation

Usage:
    from perf_engine.services.source_weights import estimate_source_weights

    weights = estimate_source_weights(reps)
    weights.ranked(3)
"""

import logging
from datetime import date, timedelta
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from perf_engine.models.schemas import RepPeriodStats
from perf_engine.models.source_map import SourceWeights

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_ITERATIONS: int = 6

# Pseudo-lead count given to the global-rate prior during shrinkage.
DEFAULT_PRIOR_STRENGTH: float = 50.0

DEFAULT_MIN_WEIGHT: float = 0.0
DEFAULT_MAX_WEIGHT: float = 2.0


# =============================================================================
# Shrinkage
# =============================================================================


def shrink_toward_prior(
    estimate: Union[float, np.ndarray],
    sample_size: Union[float, np.ndarray],
    prior_mean: float,
    prior_strength: float,
) -> Union[float, np.ndarray]:
    """
    Blend an estimate with a prior mean, weighted by sample size.

    smoothed = (estimate * n + prior_mean * k) / (n + k)

    Falls back to prior_mean where n + k <= 0. Accepts scalars or arrays.

    Example:
        >>> shrink_toward_prior(0.5, 50, 0.1, 50)
        0.3
        >>> shrink_toward_prior(0.5, 0, 0.1, 0)
        0.1
    """
    estimate_arr = np.asarray(estimate, dtype=np.float64)
    size_arr = np.asarray(sample_size, dtype=np.float64)
    denominator = size_arr + prior_strength

    safe_denominator = np.where(denominator > 0, denominator, 1.0)
    blended = (estimate_arr * size_arr + prior_mean * prior_strength) / safe_denominator
    result = np.where(denominator > 0, blended, prior_mean)

    if result.ndim == 0:
        return float(result)
    return result


# =============================================================================
# Lead Matrix
# =============================================================================


def _build_lead_matrix(
    reps: Sequence[RepPeriodStats],
) -> Tuple[List[str], np.ndarray, np.ndarray]:
    """
    Arrange lead counts as a (reps x sources) matrix.

    Returns:
        Tuple of (sources sorted by name, lead matrix, units vector).
    """
    sources = sorted({source for rep in reps for source in rep.leads_by_source})

    leads = np.array(
        [[rep.leads_by_source.get(source, 0) for source in sources] for rep in reps],
        dtype=np.float64,
    ).reshape(len(reps), len(sources))
    units = np.array([rep.units_sold for rep in reps], dtype=np.float64)

    return sources, leads, units


# =============================================================================
# Iterative Estimator
# =============================================================================


def iterate_source_weights(
    reps: Sequence[RepPeriodStats],
    iterations: int = DEFAULT_ITERATIONS,
    prior_strength: float = DEFAULT_PRIOR_STRENGTH,
    min_weight: float = DEFAULT_MIN_WEIGHT,
    max_weight: float = DEFAULT_MAX_WEIGHT,
) -> Iterator[SourceWeights]:
    """
    Run the estimator, yielding the weights after every iteration.

    Args:
        reps: Rep rows whose lead mixes and units are pooled.
        iterations: Number of scaling passes.
        prior_strength: Pseudo-leads of the global-rate prior.
        min_weight: Lower clamp for every weight.
        max_weight: Upper clamp for every weight.

    Yields:
        SourceWeights after each iteration (iterations items in total).
    """
    sources, leads, units = _build_lead_matrix(reps)
    if not sources:
        return

    total_leads = float(leads.sum())
    global_rate = float(units.sum()) / total_leads if total_leads > 0 else 0.0
    source_totals = leads.sum(axis=0)

    weights = np.full(len(sources), global_rate, dtype=np.float64)

    for iteration in range(iterations):
        predicted = leads @ weights
        active = predicted > 0

        scale = units[active] / predicted[active]
        numerator = leads[active].T @ scale
        denominator = leads[active].sum(axis=0)

        observed = denominator > 0
        average_scale = np.divide(
            numerator,
            denominator,
            out=np.zeros_like(numerator),
            where=observed,
        )

        smoothed = shrink_toward_prior(
            weights * average_scale,
            source_totals,
            global_rate,
            prior_strength,
        )
        weights = np.where(
            observed,
            np.clip(smoothed, min_weight, max_weight),
            global_rate,
        )

        logger.debug(
            f"Source weights iteration {iteration + 1}/{iterations}: "
            f"{dict(zip(sources, np.round(weights, 6).tolist()))}"
        )

        yield SourceWeights({source: float(w) for source, w in zip(sources, weights)})


def estimate_source_weights(
    reps: Sequence[RepPeriodStats],
    iterations: int = DEFAULT_ITERATIONS,
    prior_strength: float = DEFAULT_PRIOR_STRENGTH,
    min_weight: float = DEFAULT_MIN_WEIGHT,
    max_weight: float = DEFAULT_MAX_WEIGHT,
) -> SourceWeights:
    """
    Estimate expected units per lead for every source in the population.

    Args:
        reps: Rep rows whose lead mixes and units are pooled.
        iterations: Number of scaling passes.
        prior_strength: Pseudo-leads of the global-rate prior.
        min_weight: Lower clamp for every weight.
        max_weight: Upper clamp for every weight.

    Returns:
        SourceWeights keyed by source name. Empty when no rep has a lead mix.
        With iterations == 0 every source carries the global rate.

    Example:
        >>> reps = [
        ...     RepPeriodStats(rep_id='a', units_sold=3, leads_by_source={'internet': 30}),
        ...     RepPeriodStats(rep_id='b', units_sold=6, leads_by_source={'referral': 20}),
        ... ]
        >>> weights = estimate_source_weights(reps)
        >>> weights['referral'] > weights['internet']
        True
    """
    sources, leads, units = _build_lead_matrix(reps)
    total_leads = float(leads.sum())
    global_rate = float(units.sum()) / total_leads if total_leads > 0 else 0.0

    weights = SourceWeights({source: global_rate for source in sources})
    for weights in iterate_source_weights(
        reps,
        iterations=iterations,
        prior_strength=prior_strength,
        min_weight=min_weight,
        max_weight=max_weight,
    ):
        pass

    return weights


# =============================================================================
# Trailing Window
# =============================================================================


def select_weight_window(
    reps: Sequence[RepPeriodStats],
    window_days: int,
    as_of: Optional[date],
) -> List[RepPeriodStats]:
    """
    Keep rows whose period_end falls within window_days before as_of.

    Rows without period_end are always kept. as_of=None disables filtering.

    Args:
        reps: Candidate rows for weight estimation.
        window_days: Trailing window length in days.
        as_of: Inclusive end of the window.

    Returns:
        The rows inside [as_of - window_days, as_of], in input order.
    """
    if as_of is None:
        return list(reps)

    window_start = as_of - timedelta(days=window_days)
    return [
        rep for rep in reps
        if rep.period_end is None or window_start <= rep.period_end <= as_of
    ]
