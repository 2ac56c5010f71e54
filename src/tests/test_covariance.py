import numpy as np
import pytest

from fracfin.covariance import (
    PartialCorrelationMethod,
    _dense_autocov_matrix,
    autocov_matrix,
    autocov_sequence,
    conditional_covariance,
    conditional_mean,
    conditional_mean_and_covariance,
    is_regular_grid,
    levinson_durbin,
    partial_autocorrelation,
)
from fracfin.errors import CapabilityError, ContractError
from fracfin.models import (
    Capability,
    DifferentialProcess,
    FilteredProcess,
    FractionalBrownianMotion,
    FractionalGaussianNoise,
    FractionalIntegrated,
    check_capability,
)


def test_regular_grids():
    assert is_regular_grid([1, 2, 3, 4, 5])
    assert not is_regular_grid([1, 2, 4, 5])
    assert is_regular_grid([])
    assert is_regular_grid([3.0])
    assert is_regular_grid([0.0, 7.5])
    assert is_regular_grid(np.linspace(0, 1, 11))


@pytest.mark.parametrize(
    "process, grid",
    [
        (FractionalBrownianMotion(0.3), np.linspace(0.1, 2.0, 12)),
        (FractionalBrownianMotion(0.8, 2.0), [0.5, 1.0, 3.0, 3.5]),
        (FractionalGaussianNoise(0.7), 15),
        (FractionalGaussianNoise(0.2), [1, 2, 5, 9]),
        (FractionalIntegrated(0.3), 10),
    ],
)
def test_autocov_matrix_is_symmetric(process, grid):
    C = autocov_matrix(process, grid)
    assert np.allclose(C, C.T, rtol=0, atol=1e-12)


@pytest.mark.parametrize(
    "process",
    [FractionalGaussianNoise(0.65, 1.3), FractionalIntegrated(-0.2, 0.5)],
)
def test_toeplitz_path_matches_pairwise(process):
    grid = np.arange(1, 21)
    fast = autocov_matrix(process, grid)
    dense = _dense_autocov_matrix(process, grid)
    assert np.allclose(fast, dense, rtol=1e-12, atol=1e-12)


def test_irregular_grid_falls_back_to_pairwise():
    fgn = FractionalGaussianNoise(0.6)
    grid = [1, 2, 4, 7]
    C = autocov_matrix(fgn, grid)
    expected = np.array([[fgn.autocov(t, s) for s in grid] for t in grid])
    assert np.allclose(C, expected)


def test_stationarity_reduction_is_exact():
    for process in (FractionalGaussianNoise(0.35, 2.0), FractionalIntegrated(0.25)):
        for t, s in [(5, 2), (3, 9), (4, 4), (12, 1)]:
            assert process.autocov(t, s) == process.autocov(t - s)


def test_fgn_closed_form_equals_filtered_derivation():
    hurst, sigma = 0.72, 1.5
    fgn = FractionalGaussianNoise(hurst, sigma)
    diff = DifferentialProcess(FractionalBrownianMotion(hurst, sigma), 1)
    for k in range(6):
        assert fgn.autocov_lag(k) == pytest.approx(diff.autocov(10 + k, 10), rel=1e-10)


def test_filtered_process_stationarity():
    fbm = FractionalBrownianMotion(0.4)
    assert not fbm.behaves_as_stationary
    assert FilteredProcess(fbm, (1.0, -2.0, 1.0)).behaves_as_stationary
    assert not FilteredProcess(fbm, (1.0, 1.0)).behaves_as_stationary
    assert FilteredProcess(FractionalIntegrated(0.1), (1.0, 1.0)).behaves_as_stationary


def test_filter_direction():
    bm = FractionalBrownianMotion(0.5)
    # Cov(B_1 + B_2, B_2 + B_3) and Cov(B_1 + B_0, B_2 + B_1) with B_0 = 0
    assert FilteredProcess(bm, (1.0, 1.0), causal=False).autocov(1.0, 2.0) == pytest.approx(6.0)
    assert FilteredProcess(bm, (1.0, 1.0)).autocov(1.0, 2.0) == pytest.approx(2.0)


@pytest.mark.parametrize("causal, sign", [(True, -1), (False, 1)])
def test_filtered_autocov_matches_definition(causal, sign):
    fbm = FractionalBrownianMotion(0.3)
    kernel, step = (1.0, -2.0, 1.0), 0.5
    filtered = FilteredProcess(fbm, kernel, causal=causal, step=step)
    for t, s in [(3.0, 4.5), (2.0, 2.0), (6.0, 1.5)]:
        direct = sum(
            a * b * fbm.autocov(t + sign * i * step, s + sign * j * step)
            for i, a in enumerate(kernel)
            for j, b in enumerate(kernel)
        )
        assert filtered.autocov(t, s) == pytest.approx(direct, rel=1e-12)


def test_cross_covariance_is_rectangular():
    fbm = FractionalBrownianMotion(0.5)
    C = autocov_matrix(fbm, [1.0, 2.0, 3.0], [0.5, 4.0])
    assert C.shape == (3, 2)
    # standard Brownian motion: Cov(B_t, B_s) = min(t, s)
    assert np.allclose(C, [[0.5, 1.0], [0.5, 2.0], [0.5, 3.0]])


def test_autocov_sequence():
    fgn = FractionalGaussianNoise(0.5)
    assert np.allclose(autocov_sequence(fgn, 5), [1, 0, 0, 0, 0])
    with pytest.raises(ContractError):
        autocov_sequence(fgn, [1, 2, 4])


def test_nonstationary_process_has_no_lag_autocovariance():
    fbm = FractionalBrownianMotion(0.6)
    with pytest.raises(CapabilityError):
        autocov_sequence(fbm, [1.0, 2.0, 3.0])
    with pytest.raises(NotImplementedError):
        fbm.autocov(1.0)
    res = check_capability(fbm, Capability.STATIONARY)
    assert not res
    assert "stationary" in res.reason


def test_discrete_process_rejects_fractional_grid():
    with pytest.raises(ContractError):
        autocov_matrix(FractionalGaussianNoise(0.5), [0.5, 1.5, 2.5])


def test_conditioning_on_the_observed_grid():
    fgn = FractionalGaussianNoise(0.7)
    grid = np.arange(1, 8)
    values = np.random.default_rng(3).standard_normal(grid.size)
    cond = conditional_mean_and_covariance(fgn, grid, grid, values)
    assert np.allclose(cond.mean, values, atol=1e-8)
    assert np.allclose(cond.covariance, 0.0, atol=1e-8)
    assert np.allclose(cond.gain, np.eye(grid.size), atol=1e-8)


def test_conditioning_brownian_bridge():
    bm = FractionalBrownianMotion(0.5)
    mean = conditional_mean(bm, 0.5, [1.0], [2.0])
    cov = conditional_covariance(bm, 0.5, [1.0], [2.0])
    assert np.allclose(mean, [1.0])
    assert np.allclose(cov, [[0.25]])
    cond = conditional_mean_and_covariance(bm, [0.5, 1.5], [1.0, 2.0], [2.0, 1.0])
    s_xy = autocov_matrix(bm, [0.5, 1.5], [1.0, 2.0])
    s_yy = autocov_matrix(bm, [1.0, 2.0])
    assert np.allclose(cond.gain, s_xy @ np.linalg.pinv(s_yy))
    # interpolation between neighbouring observations
    assert np.allclose(cond.gain, [[0.5, 0.0], [0.5, 0.5]])


def test_conditioning_length_mismatch():
    with pytest.raises(ContractError):
        conditional_mean_and_covariance(FractionalGaussianNoise(0.5), [4], [1, 2, 3], [0.0, 1.0])


def test_levinson_durbin_on_white_noise():
    res = levinson_durbin([2.0, 0.0, 0.0, 0.0])
    assert np.allclose(res.partial_correlations, 0.0)
    assert np.allclose(res.variances, 2.0)
    assert len(res.coefficients) == 3
    assert res.coefficients[2].shape == (3,)


def test_levinson_durbin_ar1():
    phi = 0.6
    gamma = phi ** np.arange(6) / (1 - phi**2)
    res = levinson_durbin(gamma)
    assert res.partial_correlations[0] == pytest.approx(phi)
    assert np.allclose(res.partial_correlations[1:], 0.0, atol=1e-12)
    assert np.allclose(res.coefficients[-1], [phi, 0, 0, 0, 0], atol=1e-12)


def test_levinson_durbin_rejects_singular_sequence():
    with pytest.raises(ContractError):
        levinson_durbin([1.0, 1.0, 1.0])


def test_partial_correlation_farima_closed_form():
    d = 0.3
    farima = FractionalIntegrated(d)
    lags = np.arange(1, 11)
    ld = partial_autocorrelation(farima, 10, PartialCorrelationMethod.LEVINSON_DURBIN)
    direct = partial_autocorrelation(farima, 10, PartialCorrelationMethod.DIRECT)
    assert ld.shape == direct.shape == (10,)
    assert np.allclose(direct, d / (lags - d))
    assert np.allclose(ld, direct, atol=1e-10)


def test_direct_partial_correlation_needs_capability():
    with pytest.raises(CapabilityError, match="LEVINSON_DURBIN"):
        partial_autocorrelation(
            FractionalGaussianNoise(0.7), 5, PartialCorrelationMethod.DIRECT
        )
    pacf = partial_autocorrelation(FractionalGaussianNoise(0.7), 5)
    assert pacf.shape == (5,)
    assert np.all(pacf > 0)
