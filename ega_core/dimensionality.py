"""
Dimensionality Module
=====================

Number-of-factors criteria computed from the eigenvalues of the
correlation matrix:

- Kaiser criterion (eigenvalue >= 1)
- Parallel analysis (observed vs. simulated random-data eigenvalues)
- Optimal coordinates and acceleration factor (non-graphical scree tests)
"""

import pandas as pd
import numpy as np

from . import config
from .correlation import correlation_matrix, validate_correlation


def correlation_eigenvalues(corr) -> np.ndarray:
    """Eigenvalues of a correlation matrix in descending order."""
    values = validate_correlation(corr)
    return np.sort(np.linalg.eigvalsh(values))[::-1]


def parallel_analysis(
    n_obs: int,
    n_vars: int,
    n_reps: int = None,
    quantile: float = None,
    random_state: int = None
) -> dict:
    """
    Simulate eigenvalue distributions for uncorrelated normal data.

    Parameters:
        n_obs: Rows per simulated dataset
        n_vars: Columns per simulated dataset
        n_reps: Simulation repetitions. Defaults to config.PA_REPS
        quantile: Reference percentile. Defaults to config.PA_QUANTILE
        random_state: Seed. Defaults to config.RANDOM_STATE

    Returns:
        Dictionary with mean and quantile eigenvalues plus the raw simulations
    """
    if n_reps is None:
        n_reps = config.PA_REPS
    if quantile is None:
        quantile = config.PA_QUANTILE
    if random_state is None:
        random_state = config.RANDOM_STATE
    if n_obs < 3 or n_vars < 2:
        raise ValueError(f"Need n_obs >= 3 and n_vars >= 2, got n_obs={n_obs}, n_vars={n_vars}")
    if n_reps < 1:
        raise ValueError(f"n_reps must be >= 1, got {n_reps}")
    if not 0 < quantile < 1:
        raise ValueError(f"quantile must be in (0, 1), got {quantile}")

    rng = np.random.default_rng(random_state)
    simulated = np.empty((n_reps, n_vars))
    for rep in range(n_reps):
        sample = rng.standard_normal((n_obs, n_vars))
        corr = np.corrcoef(sample, rowvar=False)
        simulated[rep] = np.sort(np.linalg.eigvalsh(corr))[::-1]

    return {
        'mean': simulated.mean(axis=0),
        'quantile': np.quantile(simulated, quantile, axis=0),
        'simulated': simulated,
        'n_reps': n_reps,
        'quantile_level': quantile,
    }


def kaiser_criterion(eigenvalues, threshold: float = None) -> int:
    """Number of eigenvalues at or above the threshold (default 1)."""
    if threshold is None:
        threshold = config.KAISER_THRESHOLD
    return int(np.sum(np.asarray(eigenvalues) >= threshold))


def parallel_criterion(eigenvalues, reference) -> int:
    """Leading eigenvalues above the random-data reference, stopping at the first miss."""
    count = 0
    for observed, random_ev in zip(eigenvalues, reference):
        if observed <= random_ev:
            break
        count += 1
    return count


def optimal_coordinates(eigenvalues, reference) -> int:
    """
    Optimal coordinates scree test.

    Each eigenvalue is compared with the value predicted by the line
    through the next eigenvalue and the last one; retention stops at the
    first eigenvalue below its prediction or below the parallel reference.
    """
    ev = np.asarray(eigenvalues, dtype=float)
    ref = np.asarray(reference, dtype=float)
    n = len(ev)
    count = 0
    for i in range(n - 2):
        slope = (ev[n - 1] - ev[i + 1]) / (n - 1 - (i + 1))
        predicted = ev[i + 1] - slope
        if ev[i] < predicted or ev[i] < ref[i]:
            break
        count += 1
    return count


def acceleration_factor(eigenvalues) -> int:
    """
    Acceleration factor scree test.

    The elbow is where the second difference of the eigenvalue curve is
    largest; the factors before it are retained.
    """
    ev = np.asarray(eigenvalues, dtype=float)
    if len(ev) < 3:
        return 1
    second_diff = ev[2:] - 2 * ev[1:-1] + ev[:-2]
    # second_diff[k] is centred on eigenvalue k + 2 (1-based)
    elbow = int(np.argmax(second_diff)) + 2
    return elbow - 1


def n_scree(eigenvalues, reference) -> dict:
    """
    All four non-graphical criteria plus a per-component table.

    Parameters:
        eigenvalues: Observed eigenvalues (descending)
        reference: Parallel analysis reference eigenvalues

    Returns:
        Dictionary with a factor count per criterion and an eigenvalue table
    """
    ev = np.asarray(eigenvalues, dtype=float)
    ref = np.asarray(reference, dtype=float)

    table = pd.DataFrame({
        'component': np.arange(1, len(ev) + 1),
        'eigenvalue': ev,
        'parallel_reference': ref,
        'proportion': ev / ev.sum(),
        'cumulative': np.cumsum(ev) / ev.sum(),
    })

    return {
        'kaiser': kaiser_criterion(ev),
        'parallel': parallel_criterion(ev, ref),
        'optimal_coordinates': optimal_coordinates(ev, ref),
        'acceleration_factor': acceleration_factor(ev),
        'table': table,
    }


def determine_num_factors(
    data: pd.DataFrame,
    n_reps: int = None,
    quantile: float = None,
    random_state: int = None,
    corr: pd.DataFrame = None
) -> dict:
    """
    Determine the number of factors with parallel analysis and scree criteria.

    Parameters:
        data: Item responses
        n_reps: Parallel analysis repetitions. Defaults to config.PA_REPS
        quantile: Reference percentile. Defaults to config.PA_QUANTILE
        random_state: Seed. Defaults to config.RANDOM_STATE
        corr: Precomputed correlation matrix (computed from data if None)

    Returns:
        Dictionary with eigenvalues, parallel reference, per-criterion counts and table
    """
    if corr is None:
        corr = correlation_matrix(data)

    eigenvalues = correlation_eigenvalues(corr)
    pa = parallel_analysis(len(data), data.shape[1], n_reps, quantile, random_state)
    reference = pa['quantile']
    criteria = n_scree(eigenvalues, reference)

    print("\n" + "=" * 60)
    print("FACTOR EXTRACTION CRITERIA")
    print("=" * 60)

    print(f"\nEigenvalues (parallel reference: {pa['quantile_level']:.0%} of {pa['n_reps']} simulations):")
    for i, (ev, ref) in enumerate(zip(eigenvalues, reference), 1):
        marker = " <-- Kaiser cutoff" if i == criteria['kaiser'] else ""
        print(f"  Factor {i}: {ev:.3f} (random {ref:.3f}){marker}")

    print(f"\nKaiser Criterion (eigenvalue >= 1): {criteria['kaiser']} factors")
    print(f"Parallel Analysis: {criteria['parallel']} factors")
    print(f"Optimal Coordinates: {criteria['optimal_coordinates']} factors")
    print(f"Acceleration Factor: {criteria['acceleration_factor']} factors")

    cum_var = criteria['table']['cumulative'].to_numpy() * 100
    print(f"\nCumulative variance explained:")
    for i in range(min(criteria['parallel'] + 1, len(eigenvalues))):
        print(f"  {i+1} factor(s): {cum_var[i]:.1f}%")

    return {
        'eigenvalues': eigenvalues,
        'reference': reference,
        'parallel_analysis': pa,
        'kaiser': criteria['kaiser'],
        'parallel': criteria['parallel'],
        'optimal_coordinates': criteria['optimal_coordinates'],
        'acceleration_factor': criteria['acceleration_factor'],
        'table': criteria['table'],
    }
