import warnings

import numpy as np
import pandas as pd
import pytest
from sklearn.exceptions import ConvergenceWarning

from ega_core import network


def test_lambda_path_is_log_spaced_and_increasing(hs_corr) -> None:
    lambdas = network.lambda_path(hs_corr, nlambda=50, lambda_min_ratio=0.1)
    assert len(lambdas) == 50
    assert np.all(np.diff(lambdas) > 0)
    off_diag = hs_corr.to_numpy()[np.triu_indices(9, k=1)]
    assert lambdas[-1] == pytest.approx(np.abs(off_diag).max())
    assert lambdas[0] == pytest.approx(0.1 * lambdas[-1])
    ratios = lambdas[1:] / lambdas[:-1]
    assert np.allclose(ratios, ratios[0])


def test_lambda_path_rejects_bad_ratio(hs_corr) -> None:
    with pytest.raises(ValueError):
        network.lambda_path(hs_corr, nlambda=10, lambda_min_ratio=1.5)


def test_precision_to_partial() -> None:
    precision = np.array([[2.0, -1.0, 0.0], [-1.0, 2.0, 0.5], [0.0, 0.5, 1.0]])
    partial = network.precision_to_partial(precision)
    assert partial[0, 1] == pytest.approx(0.5)
    assert partial[1, 2] == pytest.approx(-0.5 / np.sqrt(2.0))
    assert partial[0, 2] == 0.0
    assert np.allclose(np.diag(partial), 0.0)


def test_ebic_penalizes_edges() -> None:
    corr = np.eye(3)
    sparse = np.eye(3)
    dense = np.eye(3)
    dense[0, 1] = dense[1, 0] = 0.01
    assert network.ebic(sparse, corr, 100, 0.5) < network.ebic(dense, corr, 100, 0.5)


def test_ebic_glasso_network_is_symmetric_with_zero_diagonal(hs_corr) -> None:
    result = network.ebic_glasso(hs_corr, n_obs=301)
    net = result['network']
    assert list(net.columns) == list(hs_corr.columns)
    assert np.allclose(net.to_numpy(), net.to_numpy().T)
    assert np.allclose(np.diag(net.to_numpy()), 0.0)
    assert (net.abs().to_numpy() < 1).all()
    assert 0 < result['n_edges'] < 36
    assert result['ebic'] == pytest.approx(result['path']['ebic'].min())
    assert len(result['path']) <= 100


def test_ebic_glasso_keeps_within_dimension_edges(hs_corr) -> None:
    net = network.ebic_glasso(hs_corr, n_obs=301)['network']
    assert net.loc['x4', 'x5'] > 0.2
    assert net.loc['x7', 'x8'] > 0.2
    assert net.loc['x1', 'x3'] > 0


def test_larger_gamma_gives_sparser_network(hs_corr) -> None:
    loose = network.ebic_glasso(hs_corr, n_obs=301, gamma=0.0)
    strict = network.ebic_glasso(hs_corr, n_obs=301, gamma=0.5)
    assert strict['n_edges'] <= loose['n_edges']


def test_ebic_glasso_rejects_tiny_sample(hs_corr) -> None:
    with pytest.raises(ValueError):
        network.ebic_glasso(hs_corr, n_obs=1)


def test_tmfg_has_planar_edge_count(hs_corr) -> None:
    net = network.tmfg(hs_corr)
    values = net.to_numpy()
    p = values.shape[0]
    assert network.count_edges(values) == 3 * p - 6
    assert np.allclose(values, values.T)
    nonzero = values != 0
    assert np.allclose(values[nonzero], hs_corr.to_numpy()[nonzero])


def test_tmfg_requires_four_nodes() -> None:
    corr = pd.DataFrame(np.eye(3), columns=list('abc'), index=list('abc'))
    with pytest.raises(ValueError):
        network.tmfg(corr)


def test_network_summary_and_networkx_graph(hs_corr) -> None:
    net = network.ebic_glasso(hs_corr, n_obs=301)['network']
    summary = network.network_summary(net)
    graph = network.to_networkx(net)
    assert graph.number_of_nodes() == 9
    assert graph.number_of_edges() == summary['n_edges']
    assert summary['n_positive'] + summary['n_negative'] == summary['n_edges']
    assert summary['strength'].index.tolist() == list(net.index)


def test_ebic_glasso_raises_when_every_fit_fails(hs_corr, monkeypatch) -> None:
    def failing_fit(values, alpha, max_iter, tol):
        raise FloatingPointError("not positive definite")

    monkeypatch.setattr(network, '_fit_glasso', failing_fit)
    with pytest.raises(network.NetworkEstimationError):
        network.ebic_glasso(hs_corr, n_obs=301, nlambda=10)


def test_ebic_glasso_skips_a_failed_fit(hs_corr, monkeypatch) -> None:
    lambdas = network.lambda_path(hs_corr, nlambda=10)
    bad_lambda = lambdas[4]
    real_fit = network._fit_glasso

    def flaky_fit(values, alpha, max_iter, tol):
        if alpha == bad_lambda:
            raise FloatingPointError("not positive definite")
        return real_fit(values, alpha, max_iter, tol)

    monkeypatch.setattr(network, '_fit_glasso', flaky_fit)
    result = network.ebic_glasso(hs_corr, n_obs=301, nlambda=10)
    assert len(result['path']) == 10 - 1
    assert bad_lambda not in result['path']['lambda'].tolist()


def test_ebic_glasso_reports_non_convergence(hs_corr, monkeypatch, capsys) -> None:
    real_fit = network._fit_glasso

    def unconverged_fit(values, alpha, max_iter, tol):
        precision, _ = real_fit(values, alpha, max_iter, tol)
        return precision, False

    monkeypatch.setattr(network, '_fit_glasso', unconverged_fit)
    result = network.ebic_glasso(hs_corr, n_obs=301, nlambda=10)
    assert result['converged'] is False
    assert not result['path']['converged'].any()
    assert "did not converge" in capsys.readouterr().out


def test_fit_glasso_converged_unless_solver_warns(hs_corr, monkeypatch) -> None:
    values = hs_corr.to_numpy()

    def quiet_solver(emp_cov, alpha, max_iter, tol):
        return emp_cov, np.linalg.inv(emp_cov)

    monkeypatch.setattr(network, 'graphical_lasso', quiet_solver)
    _, converged = network._fit_glasso(values, 0.1, 1, 1e-4)
    assert converged is True

    def warning_solver(emp_cov, alpha, max_iter, tol):
        warnings.warn("graphical_lasso: did not converge", ConvergenceWarning)
        return emp_cov, np.linalg.inv(emp_cov)

    monkeypatch.setattr(network, 'graphical_lasso', warning_solver)
    _, converged = network._fit_glasso(values, 0.1, 1, 1e-4)
    assert converged is False


def test_ebic_glasso_quiet_mode(hs_corr, capsys) -> None:
    network.ebic_glasso(hs_corr, n_obs=301, nlambda=10, verbose=False)
    assert "EBICglasso NETWORK" not in capsys.readouterr().out
