import numpy as np
import pytest

from fracfin.errors import ContractError, EstimationCancelled
from fracfin.estimators import (
    CancellationToken,
    FitVariables,
    bspline_covmat,
    bspline_log_likelihood,
    bspline_mle,
    bspline_scalogram_estim,
    partial_bspline_covmat,
    partial_wavelet_log_likelihood,
    partial_wavelet_mle,
    partial_wavelet_objective,
)
from fracfin.wavelet import ConvolutionMode, bspline_dcwt, c1rho, stack_lags


def _draw(cov, size, seed):
    rng = np.random.default_rng(seed)
    return rng.multivariate_normal(np.zeros(cov.shape[0]), cov, size=size, method="eigh").T


def test_covmat_block_structure():
    sclrng = [1, 2, 3]
    C = bspline_covmat(2, sclrng, 2, 0.7)
    J = len(sclrng)
    assert C.shape == (9, 9)
    assert np.allclose(C, C.T)
    assert np.allclose(C[:J, :J], partial_bspline_covmat(sclrng, 2, 0.7))
    # stationary in time: block (r, c) only depends on c - r
    assert np.allclose(C[:J, J : 2 * J], C[J : 2 * J, 2 * J :])
    assert np.allclose(C[J : 2 * J, :J], C[:J, J : 2 * J].T)
    assert np.all(np.linalg.eigvalsh(C) > 0)


def test_covmat_entries():
    sclrng = [2, 5]
    H, v = 0.4, 1
    C = bspline_covmat(1, sclrng, v, H, ConvolutionMode.CAUSAL)
    a1, a2 = sclrng
    expected = c1rho(1 / np.sqrt(a1 * a2), a2 / a1, H, v, ConvolutionMode.CAUSAL)
    assert C[0, 3] == pytest.approx(expected * (a1 * a2) ** (H + 0.5))
    assert C[1, 1] == pytest.approx(c1rho(0, 1, H, v) * a2 ** (2 * H + 1))


def test_covmat_matches_dcwt_of_fbm(fbm_path):
    # empirical covariance of DCWT coefficients against the model
    H_true = 0.7
    sclrng = [4, 6]
    X = np.hstack(
        [stack_lags(bspline_dcwt(fbm_path(H_true, 1024, seed=s), sclrng, 1), 2) for s in range(4)]
    )
    model = bspline_covmat(1, sclrng, 1, H_true)
    emp = X @ X.T / X.shape[1]
    assert np.allclose(emp, model, rtol=0.35, atol=0.35 * np.abs(model).max())


def test_bspline_mle_on_model_samples():
    sclrng, v, H_true, sigma_true = [1, 2, 3, 4], 2, 0.65, 1.3
    cov = sigma_true**2 * bspline_covmat(1, sclrng, v, H_true)
    X = _draw(cov, 400, seed=0)
    est = bspline_mle(X, sclrng, v)
    assert abs(est.hurst - H_true) < 0.05
    assert est.sigma == pytest.approx(sigma_true, rel=0.1)


def test_bspline_log_likelihood_requires_whole_lags():
    X = np.ones((7, 3))
    with pytest.raises(ContractError):
        bspline_log_likelihood(X, [1, 2, 3], 2, 0.5)


def test_partial_likelihoods_peak_near_truth():
    sclrng, v, H_true, sigma_true = [2, 4, 8], 2, 0.4, 1.5
    X = _draw(sigma_true**2 * partial_bspline_covmat(sclrng, v, H_true), 500, seed=1)
    ll = partial_wavelet_log_likelihood
    assert ll(X, sclrng, v, H_true) > ll(X, sclrng, v, 0.9)
    obj = partial_wavelet_objective
    assert obj(X, sclrng, v, H_true, sigma_true) > obj(X, sclrng, v, H_true, 3.0)
    assert obj(X, sclrng, v, H_true, sigma_true) > obj(X, sclrng, v, 0.8, sigma_true)


def test_partial_wavelet_mle_variants():
    sclrng, v, H_true, sigma_true = [2, 4, 8], 2, 0.4, 1.5
    X = _draw(sigma_true**2 * partial_bspline_covmat(sclrng, v, H_true), 500, seed=2)

    both = partial_wavelet_mle(X, sclrng, v)
    assert abs(both.hurst - H_true) < 0.05
    assert both.sigma == pytest.approx(sigma_true, rel=0.1)

    hurst_only = partial_wavelet_mle(
        X, sclrng, v, variables=FitVariables.HURST, init=(0.5, sigma_true)
    )
    assert hurst_only.sigma == sigma_true
    assert abs(hurst_only.hurst - H_true) < 0.05

    sigma_only = partial_wavelet_mle(
        X, sclrng, v, variables=FitVariables.SIGMA, init=(H_true, 1.0)
    )
    assert sigma_only.hurst == H_true
    assert sigma_only.sigma == pytest.approx(sigma_true, rel=0.1)


def test_partial_wavelet_mle_checks_rows_and_token():
    X = np.ones((4, 10))
    with pytest.raises(ContractError):
        partial_wavelet_mle(X, [2, 4, 8], 2)
    token = CancellationToken()
    token.cancel()
    X = _draw(partial_bspline_covmat([2, 4], 1, 0.5), 50, seed=3)
    with pytest.raises(EstimationCancelled):
        partial_wavelet_mle(X, [2, 4], 1, token=token)


def test_scalogram_and_mle_agree(fbm_path):
    H_true = 0.65
    sclrng, v = [4, 6, 8, 10, 12], 2
    W = bspline_dcwt(fbm_path(H_true, 2048, seed=8), sclrng, v)
    fast = bspline_scalogram_estim(W, sclrng, v)
    full = bspline_mle(W, sclrng, v)
    assert abs(fast.hurst - H_true) < 0.1
    assert abs(fast.hurst - full.hurst) < 0.15


def test_bspline_mle_on_many_lags_of_a_path(fbm_path):
    # J·L coefficients from far fewer path samples: a rank-deficient model
    sclrng, v = [1, 2], 3
    X = stack_lags(bspline_dcwt(fbm_path(0.6, 2048, seed=11), sclrng, v), 31)
    for hurst in (0.01, 0.1, 0.7, 0.99):
        assert np.isfinite(bspline_log_likelihood(X, sclrng, v, hurst))
    est = bspline_mle(X, sclrng, v)
    assert 0 < est.hurst < 1
    assert np.isfinite(est.sigma) and est.sigma > 0
