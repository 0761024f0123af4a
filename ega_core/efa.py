"""
Exploratory Factor Analysis Module
===================================

Classical EFA used as a comparison baseline for EGA: factorability
testing, maximum-likelihood extraction with rotation, loading
interpretation and agreement with the EGA partition.
"""

import logging
import warnings

import pandas as pd
import numpy as np
from factor_analyzer import FactorAnalyzer
from factor_analyzer.factor_analyzer import calculate_bartlett_sphericity, calculate_kmo
from sklearn.exceptions import ConvergenceWarning
from sklearn.metrics import adjusted_rand_score

from . import config

logger = logging.getLogger(__name__)


def check_factorability(df: pd.DataFrame) -> dict:
    """
    Test whether data is suitable for factor analysis.

    Performs:
    - Bartlett's Test of Sphericity: Should be significant (p < 0.05)
    - KMO (Kaiser-Meyer-Olkin): Should be > 0.6, ideally > 0.8

    Parameters:
        df: Item responses (n_samples x n_items)

    Returns:
        Dictionary with test results and interpretations
    """
    var_names = list(df.columns)

    # Bartlett's test
    chi_square, p_value = calculate_bartlett_sphericity(df.to_numpy())

    # KMO test
    kmo_all, kmo_model = calculate_kmo(df.to_numpy())

    results = {
        'bartlett_chi_square': chi_square,
        'bartlett_p_value': p_value,
        'bartlett_pass': p_value < 0.05,
        'kmo_overall': kmo_model,
        'kmo_label': config.get_kmo_label(kmo_model),
        'kmo_per_variable': dict(zip(var_names, kmo_all)),
    }

    # Print results
    print("\n" + "=" * 60)
    print("FACTORABILITY TESTS")
    print("=" * 60)

    print(f"\nBartlett's Test of Sphericity:")
    print(f"  Chi-square: {chi_square:,.2f}")
    print(f"  p-value: {p_value:.2e}")
    print(f"  Result: {'PASS' if results['bartlett_pass'] else 'FAIL'}")

    print(f"\nKaiser-Meyer-Olkin (KMO) Measure:")
    print(f"  Overall KMO: {kmo_model:.3f} ({results['kmo_label']})")

    print(f"\n  Per-variable KMO:")
    for var, kmo in results['kmo_per_variable'].items():
        label = config.get_kmo_label(kmo)
        print(f"    {var}: {kmo:.3f} ({label})")

    return results


def get_factorability_summary(results: dict) -> pd.DataFrame:
    """
    Convert factorability results to a summary DataFrame.

    Parameters:
        results: Output from check_factorability()

    Returns:
        DataFrame with factorability test results
    """
    rows = [
        {'Test': 'Bartlett_Chi_Square', 'Value': results['bartlett_chi_square'], 'Interpretation': ''},
        {'Test': 'Bartlett_p_value', 'Value': results['bartlett_p_value'],
         'Interpretation': 'PASS' if results['bartlett_pass'] else 'FAIL'},
        {'Test': 'KMO_Overall', 'Value': results['kmo_overall'], 'Interpretation': results['kmo_label']},
    ]

    for var, kmo in results['kmo_per_variable'].items():
        rows.append({
            'Test': f'KMO_{var}',
            'Value': kmo,
            'Interpretation': config.get_kmo_label(kmo)
        })

    return pd.DataFrame(rows)


def run_efa(
    df: pd.DataFrame,
    n_factors: int,
    rotation: str = None,
    method: str = None
) -> dict:
    """
    Run Exploratory Factor Analysis with specified extraction and rotation.

    Parameters:
        df: Item responses (n_samples x n_items)
        n_factors: Number of factors to extract
        rotation: Rotation method. Defaults to config.DEFAULT_ROTATION
        method: Extraction method. Defaults to config.DEFAULT_FA_METHOD ('ml')

    Returns:
        Dictionary with factor_analyzer, loadings, communalities, uniquenesses, variance
        and a converged flag
    """
    if rotation is None:
        rotation = config.DEFAULT_ROTATION
    if method is None:
        method = config.DEFAULT_FA_METHOD

    var_names = list(df.columns)
    if not 1 <= n_factors < len(var_names):
        raise ValueError(
            f"n_factors must be between 1 and {len(var_names) - 1} for {len(var_names)} items, got {n_factors}"
        )

    # factor_analyzer rejects rotation with a single factor
    fa_rotation = rotation if n_factors > 1 else None
    fa = FactorAnalyzer(n_factors=n_factors, rotation=fa_rotation, method=method)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always')
        fa.fit(df)
    for w in caught:
        logger.info("FactorAnalyzer: %s", w.message)
    converged = not any(_is_convergence_warning(w) for w in caught)
    if not converged:
        logger.info("FactorAnalyzer did not converge (%d factors, %s)", n_factors, method)

    factor_cols = [f'Factor_{i+1}' for i in range(n_factors)]

    # Extract results
    loadings = pd.DataFrame(fa.loadings_, index=var_names, columns=factor_cols)

    communalities = pd.DataFrame(
        fa.get_communalities(),
        index=var_names,
        columns=['Communality']
    )

    uniquenesses = pd.Series(fa.get_uniquenesses(), index=var_names, name='Uniqueness')

    variance = fa.get_factor_variance()
    variance_df = pd.DataFrame(
        variance,
        index=['Variance', 'Proportional_Var', 'Cumulative_Var'],
        columns=factor_cols
    )

    print("\n" + "=" * 60)
    print(f"FACTOR ANALYSIS ({n_factors} factors, {method} extraction, {fa_rotation} rotation)")
    print("=" * 60)

    print("\nFactor Loadings:")
    print("-" * 50)
    print(loadings.round(3).to_string())

    print("\nCommunalities:")
    print("-" * 50)
    for var in var_names:
        comm = communalities.loc[var, 'Communality']
        status = "LOW" if comm < config.COMMUNALITY_THRESHOLD else "OK"
        print(f"  {var}: {comm:.3f} [{status}]")

    print(f"\nTotal variance explained: {variance[2][-1]*100:.1f}%")
    if not converged:
        print("  WARNING: factor extraction did not converge")

    # Factor interpretation
    print("\n" + "-" * 50)
    print(f"FACTOR INTERPRETATION (loadings > {config.LOADING_THRESHOLD})")
    print("-" * 50)

    for factor, loaders in interpret_factors(loadings).items():
        if loaders:
            print(f"\n{factor}:")
            for var, loading in loaders:
                sign = "+" if loading > 0 else "-"
                print(f"  {sign} {var} ({config.get_item_label(var)}): {loading:.2f}")

    return {
        'factor_analyzer': fa,
        'loadings': loadings,
        'communalities': communalities,
        'uniquenesses': uniquenesses,
        'variance': variance_df,
        'n_factors': n_factors,
        'rotation': fa_rotation,
        'method': method,
        'converged': converged,
    }


def _is_convergence_warning(w: warnings.WarningMessage) -> bool:
    return issubclass(w.category, ConvergenceWarning) or 'converge' in str(w.message).lower()


def calculate_factor_scores(
    fa: FactorAnalyzer,
    scaled_data: np.ndarray,
    valid_indices: pd.Index = None
) -> pd.DataFrame:
    """
    Calculate factor scores for each observation.

    Parameters:
        fa: Fitted FactorAnalyzer object
        scaled_data: Standardized data array
        valid_indices: Optional index to assign to output DataFrame

    Returns:
        DataFrame with factor scores (n_samples x n_factors)
    """
    scores = fa.transform(scaled_data)
    n_factors = scores.shape[1]

    scores_df = pd.DataFrame(
        scores,
        index=valid_indices,
        columns=[f'Factor_{i+1}' for i in range(n_factors)]
    )

    print("\n" + "=" * 60)
    print("FACTOR SCORES")
    print("=" * 60)
    print(f"Calculated {n_factors} factor scores for {len(scores_df):,} observations")
    print("\nFactor Score Statistics:")
    print(scores_df.describe().round(3).to_string())

    return scores_df


def interpret_factors(
    loadings: pd.DataFrame,
    threshold: float = None
) -> dict[str, list[tuple[str, float]]]:
    """
    Generate factor interpretations based on high loadings.

    Parameters:
        loadings: Factor loadings DataFrame
        threshold: Minimum absolute loading to consider. Defaults to config.LOADING_THRESHOLD

    Returns:
        Dictionary mapping factor names to list of (variable, loading) tuples
    """
    if threshold is None:
        threshold = config.LOADING_THRESHOLD

    interpretations = {}
    for col in loadings.columns:
        high_loaders = loadings[abs(loadings[col]) > threshold][col]
        high_loaders = high_loaders.reindex(high_loaders.abs().sort_values(ascending=False).index)
        interpretations[col] = [(var, loading) for var, loading in high_loaders.items()]

    return interpretations


def primary_factors(loadings: pd.DataFrame) -> pd.Series:
    """Factor with the largest absolute loading for each item."""
    return loadings.abs().idxmax(axis=1).rename('primary_factor')


def cross_loadings(loadings: pd.DataFrame, threshold: float = None) -> pd.DataFrame:
    """
    Items whose second-largest absolute loading reaches the threshold.

    Parameters:
        loadings: Factor loadings DataFrame
        threshold: Minimum secondary |loading|. Defaults to config.LOADING_THRESHOLD

    Returns:
        DataFrame with primary and secondary factor and loading per cross-loading item
    """
    if threshold is None:
        threshold = config.LOADING_THRESHOLD

    rows = []
    if loadings.shape[1] < 2:
        return pd.DataFrame(rows, columns=['item', 'primary_factor', 'primary_loading',
                                           'secondary_factor', 'secondary_loading'])

    for item, row in loadings.iterrows():
        ranked = row.abs().sort_values(ascending=False)
        primary, secondary = ranked.index[0], ranked.index[1]
        if ranked.iloc[1] >= threshold:
            rows.append({
                'item': item,
                'primary_factor': primary,
                'primary_loading': row[primary],
                'secondary_factor': secondary,
                'secondary_loading': row[secondary],
            })

    return pd.DataFrame(rows, columns=['item', 'primary_factor', 'primary_loading',
                                       'secondary_factor', 'secondary_loading'])


def compare_with_ega(ega_membership: pd.Series, efa_assignment: pd.Series) -> dict:
    """
    Agreement between the EGA partition and the EFA primary-factor assignment.

    Parameters:
        ega_membership: EGA community per item (NA = unassigned)
        efa_assignment: Primary factor per item

    Returns:
        Dictionary with adjusted Rand index and a cross-tabulation
    """
    efa_assignment = efa_assignment.reindex(ega_membership.index)
    ega_labels = ega_membership.astype('object').where(ega_membership.notna(), 'unassigned')
    ega_labels = ega_labels.map(lambda label: label if label == 'unassigned' else f'Dim_{label}')

    ari = adjusted_rand_score(ega_labels.astype(str), efa_assignment.astype(str))
    crosstab = pd.crosstab(ega_labels.rename('EGA'), efa_assignment.rename('EFA'))

    print("\n" + "=" * 60)
    print("EGA vs EFA AGREEMENT")
    print("=" * 60)
    print(f"  Adjusted Rand index: {ari:.3f}")
    print(crosstab.to_string())

    return {
        'adjusted_rand_index': float(ari),
        'crosstab': crosstab,
    }
