import numpy as np
import pytest

from fracfin.errors import ContractError
from fracfin.wavelet import (
    FAR_FIELD,
    ConvolutionMode,
    bspline_dcwt,
    bspline_filter,
    bspline_wavelet,
    c1rho,
    stack_lags,
)


def test_haar_kernel_value():
    # -1/2 ∫∫ ψ(u)ψ(w)|u - w| du dw = 2/3 for the Haar wavelet
    assert c1rho(0, 1, 0.5, 1) == pytest.approx(2 / 3)
    assert c1rho(0, 1, 0.5, 1, ConvolutionMode.CAUSAL) == pytest.approx(2 / 3)


@pytest.mark.parametrize(
    "tau, rho, hurst, v",
    [(0.0, 1.0, 0.7, 2), (0.5, 2.0, 0.3, 2), (-1.2, 0.5, 0.6, 1), (0.3, 1.5, 0.8, 3)],
)
def test_kernel_matches_numerical_integral(tau, rho, hurst, v):
    n = 1200
    h = 2 * v / n
    u = -v + (np.arange(n) + 0.5) * h
    psi = bspline_wavelet(u + v, v)
    sr = np.sqrt(rho)
    K = np.abs(tau + u[:, None] / sr - sr * u[None, :]) ** (2 * hurst)
    numeric = -0.5 * psi @ K @ psi * h * h
    assert c1rho(tau, rho, hurst, v) == pytest.approx(numeric, rel=2e-3, abs=1e-6)


def _gauss_kernel(tau, rho, hurst, v, nodes=12):
    # Gauss-Legendre on each unit piece of the centred wavelet
    g, w = np.polynomial.legendre.leggauss(nodes)
    u = np.concatenate([j + 0.5 + 0.5 * g for j in range(-v, v)])
    wt = np.tile(0.5 * w, 2 * v)
    psi = bspline_wavelet(u + v, v) * wt
    sr = np.sqrt(rho)
    K = np.abs(tau + u[:, None] / sr - sr * u[None, :]) ** (2 * hurst)
    return -0.5 * psi @ K @ psi


@pytest.mark.parametrize(
    "tau, rho, hurst, v",
    [(15.0, 1.0, 0.3, 3), (25.0, 1.0, 0.3, 3), (-20.0, 2.0, 0.7, 3), (12.0, 0.5, 0.5, 2)],
)
def test_kernel_at_far_lags_matches_quadrature(tau, rho, hurst, v):
    numeric = _gauss_kernel(tau, rho, hurst, v)
    assert c1rho(tau, rho, hurst, v) == pytest.approx(numeric, rel=1e-4)


def test_kernel_is_continuous_across_the_far_field_switch():
    v, rho, hurst = 3, 1.0, 0.6
    # reach of the centred kernel is v (√ρ + 1/√ρ)
    edge = FAR_FIELD * v * 2
    near, far = c1rho(edge - 1e-9, rho, hurst, v), c1rho(edge + 1e-9, rho, hurst, v)
    assert far == pytest.approx(near, rel=1e-5)
    assert far == pytest.approx(_gauss_kernel(edge + 1e-9, rho, hurst, v), rel=1e-5)


def test_kernel_is_symmetric_in_the_scale_ratio():
    for hurst in (0.2, 0.5, 0.9):
        assert c1rho(0, 3.0, hurst, 2) == pytest.approx(c1rho(0, 1 / 3.0, hurst, 2))


def test_wavelet_shape():
    u = np.linspace(-1, 5, 601)
    psi = bspline_wavelet(u, 2)
    assert np.all(psi[(u < 0) | (u > 4)] == 0)
    assert bspline_wavelet(0.5, 1) == pytest.approx(1.0)
    assert bspline_wavelet(1.5, 1) == pytest.approx(-1.0)
    with pytest.raises(ContractError):
        bspline_wavelet(u, 0)


@pytest.mark.parametrize("v", [1, 2, 3])
def test_filter_has_vanishing_moments(v):
    for a in (1, 2, 5):
        h = bspline_filter(a, v)
        k = np.arange(h.size)
        assert h.size == 2 * v * a
        for m in range(v):
            assert abs(np.sum(k**m * h)) < 1e-9 * max(1.0, h.size**m)


@pytest.mark.parametrize("mode", list(ConvolutionMode))
def test_dcwt_kills_polynomial_trends(mode):
    t = np.arange(200, dtype=float)
    W = bspline_dcwt(3.0 + 0.5 * t, [1, 2, 4], 2, mode)
    assert np.allclose(W, 0.0, atol=1e-9)
    W = bspline_dcwt(1.0 - 2e-3 * t**2 + 0.1 * t, [2, 3], 3, mode)
    assert np.allclose(W, 0.0, atol=1e-9)


@pytest.mark.parametrize("mode", list(ConvolutionMode))
def test_dcwt_shape(mode):
    x = np.random.default_rng(0).standard_normal(100)
    W = bspline_dcwt(x, [1, 2, 3], 2, mode)
    assert W.shape == (3, 100 - 2 * 2 * 3 + 1)
    with pytest.raises(ContractError):
        bspline_dcwt(x[:10], [1, 2, 3], 2, mode)


def test_dcwt_variance_follows_kernel(fbm_path):
    H_true = 0.6
    sclrng = [4, 8]
    W = np.hstack(
        [bspline_dcwt(fbm_path(H_true, 2048, seed=seed), sclrng, 2) for seed in range(4)]
    )
    expected = [c1rho(0, 1, H_true, 2) * a ** (2 * H_true + 1) for a in sclrng]
    ratio = W.var(axis=1) / np.array(expected)
    assert np.all((ratio > 0.7) & (ratio < 1.4))


def test_stack_lags_layout():
    W = np.arange(12, dtype=float).reshape(2, 6)
    X = stack_lags(W, 3)
    assert X.shape == (6, 4)
    assert np.array_equal(X[:, 0], [0, 6, 1, 7, 2, 8])
    assert np.array_equal(X[:, -1], [3, 9, 4, 10, 5, 11])
    with pytest.raises(ContractError):
        stack_lags(W, 7)
