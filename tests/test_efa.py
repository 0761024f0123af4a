import warnings

import pandas as pd
import pytest

from ega_core import community, config, ega, efa


@pytest.fixture(scope='module')
def hs_efa(hs_data):
    return efa.run_efa(hs_data, n_factors=3)


def test_factorability_of_holzinger_data(hs_data) -> None:
    results = efa.check_factorability(hs_data)
    assert results['bartlett_pass']
    assert results['kmo_overall'] > 0.6
    summary = efa.get_factorability_summary(results)
    assert len(summary) == 3 + 9


def test_ml_varimax_solution_shape(hs_efa) -> None:
    loadings = hs_efa['loadings']
    assert loadings.shape == (9, 3)
    assert hs_efa['method'] == 'ml'
    assert hs_efa['rotation'] == 'varimax'
    assert (hs_efa['communalities']['Communality'] <= 1.0 + 1e-6).all()
    assert hs_efa['variance'].loc['Cumulative_Var'].iloc[-1] < 1.0


def test_textual_and_speed_items_share_primary_factors(hs_efa) -> None:
    primary = efa.primary_factors(hs_efa['loadings'])
    textual = set(primary[['x4', 'x5', 'x6']])
    speed = set(primary[['x7', 'x8', 'x9']])
    assert len(textual) == 1
    assert len(speed) == 1
    assert textual != speed


def test_x9_cross_loads_on_visual_factor(hs_efa) -> None:
    loadings = hs_efa['loadings']
    primary = efa.primary_factors(loadings)
    visual_factor = primary['x1']
    assert visual_factor not in {primary['x4'], primary['x7']}
    assert primary['x9'] != visual_factor
    assert abs(loadings.loc['x9', visual_factor]) >= config.LOADING_THRESHOLD

    cross = efa.cross_loadings(loadings)
    assert 'x9' in cross['item'].tolist()
    row = cross.set_index('item').loc['x9']
    assert row['secondary_factor'] == visual_factor


def test_run_efa_rejects_invalid_factor_count(hs_data) -> None:
    with pytest.raises(ValueError):
        efa.run_efa(hs_data, n_factors=0)
    with pytest.raises(ValueError):
        efa.run_efa(hs_data, n_factors=9)


def test_single_factor_solution_is_unrotated(hs_data) -> None:
    result = efa.run_efa(hs_data, n_factors=1)
    assert result['rotation'] is None
    assert efa.cross_loadings(result['loadings']).empty


def test_interpret_factors_sorted_by_magnitude(hs_efa) -> None:
    interpretations = efa.interpret_factors(hs_efa['loadings'], threshold=0.3)
    for loaders in interpretations.values():
        magnitudes = [abs(loading) for _, loading in loaders]
        assert magnitudes == sorted(magnitudes, reverse=True)


def test_factor_scores_shape(hs_data, hs_efa) -> None:
    scores = efa.calculate_factor_scores(hs_efa['factor_analyzer'], hs_data.to_numpy(), hs_data.index)
    assert scores.shape == (301, 3)
    assert scores.index.equals(hs_data.index)


def test_ega_and_efa_agree_on_holzinger(hs_data, hs_efa) -> None:
    ega_result = ega.ega(hs_data)
    comparison = efa.compare_with_ega(ega_result['membership'], efa.primary_factors(hs_efa['loadings']))
    assert comparison['adjusted_rand_index'] == pytest.approx(1.0)
    assert comparison['crosstab'].to_numpy().sum() == 9


def test_compare_with_ega_handles_unassigned_items() -> None:
    membership = pd.Series([1, 1, pd.NA, 2], index=list('abcd'), dtype='Int64')
    assignment = pd.Series(['Factor_1', 'Factor_1', 'Factor_2', 'Factor_2'], index=list('abcd'))
    comparison = efa.compare_with_ega(membership, assignment)
    assert 'unassigned' in comparison['crosstab'].index
    assert comparison['adjusted_rand_index'] < 1.0


def test_run_efa_reports_convergence(hs_efa) -> None:
    assert hs_efa['converged'] is True


def test_run_efa_flags_non_convergence(hs_data, monkeypatch, capsys) -> None:
    real_fit = efa.FactorAnalyzer.fit

    def unconverged_fit(self, X, y=None):
        fitted = real_fit(self, X, y)
        warnings.warn("Optimization did not converge", RuntimeWarning)
        return fitted

    monkeypatch.setattr(efa.FactorAnalyzer, 'fit', unconverged_fit)
    result = efa.run_efa(hs_data, n_factors=3)
    assert result['converged'] is False
    assert "WARNING: factor extraction did not converge" in capsys.readouterr().out
