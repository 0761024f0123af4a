import numpy as np
import pytest

from ega_core import dimensionality


def test_holzinger_parallel_analysis_and_kaiser_agree_on_three(hs_data, hs_corr) -> None:
    result = dimensionality.determine_num_factors(hs_data, n_reps=100, corr=hs_corr)
    assert result['kaiser'] == 3
    assert result['parallel'] == 3
    assert result['optimal_coordinates'] == 3
    assert np.all(np.diff(result['eigenvalues']) <= 0)
    assert result['eigenvalues'].sum() == pytest.approx(9.0)


def test_parallel_analysis_is_reproducible() -> None:
    first = dimensionality.parallel_analysis(200, 6, n_reps=30, random_state=3)
    second = dimensionality.parallel_analysis(200, 6, n_reps=30, random_state=3)
    assert np.allclose(first['quantile'], second['quantile'])
    assert first['simulated'].shape == (30, 6)
    assert np.all(first['quantile'] >= first['mean'] - 1e-12)
    assert first['mean'].sum() == pytest.approx(6.0)


def test_parallel_analysis_validates_arguments() -> None:
    with pytest.raises(ValueError):
        dimensionality.parallel_analysis(2, 6)
    with pytest.raises(ValueError):
        dimensionality.parallel_analysis(100, 6, quantile=1.5)


def test_kaiser_criterion() -> None:
    assert dimensionality.kaiser_criterion([2.5, 1.2, 1.0, 0.3]) == 3
    assert dimensionality.kaiser_criterion([2.5, 1.2, 1.0, 0.3], threshold=1.1) == 2


def test_parallel_criterion_stops_at_first_miss() -> None:
    observed = [3.0, 1.0, 1.5, 0.2]
    reference = [1.3, 1.2, 1.1, 1.0]
    assert dimensionality.parallel_criterion(observed, reference) == 1


def test_acceleration_factor_finds_elbow() -> None:
    # Sharp drop after the first eigenvalue
    assert dimensionality.acceleration_factor([4.0, 1.0, 0.9, 0.8, 0.7]) == 1
    assert dimensionality.acceleration_factor([3.0, 2.8, 0.5, 0.4, 0.3]) == 2


def test_optimal_coordinates_respects_reference() -> None:
    eigenvalues = [3.216, 1.639, 1.365, 0.699, 0.584, 0.500, 0.473, 0.286, 0.238]
    assert dimensionality.optimal_coordinates(eigenvalues, [0.0] * 9) >= 3
    assert dimensionality.optimal_coordinates(eigenvalues, [1.0] * 9) == 3


def test_n_scree_table(hs_corr) -> None:
    eigenvalues = dimensionality.correlation_eigenvalues(hs_corr)
    result = dimensionality.n_scree(eigenvalues, np.ones(9))
    table = result['table']
    assert table['cumulative'].iloc[-1] == pytest.approx(1.0)
    assert result['kaiser'] == 3


def test_determine_num_factors_prints_kaiser_rule(hs_data, hs_corr, capsys) -> None:
    dimensionality.determine_num_factors(hs_data, n_reps=10, corr=hs_corr)
    assert "Kaiser Criterion (eigenvalue >= 1): 3 factors" in capsys.readouterr().out
