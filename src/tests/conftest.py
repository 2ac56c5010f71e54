import numpy as np
import pytest

from fracfin.covariance import autocov_matrix
from fracfin.models import FractionalGaussianNoise


def _fgn(hurst, n, sigma=1.0, size=None, seed=0):
    """Exact fGn draw through the Cholesky factor of its covariance."""
    rng = np.random.default_rng(seed)
    chol = np.linalg.cholesky(autocov_matrix(FractionalGaussianNoise(hurst, sigma), n))
    z = rng.standard_normal(n if size is None else (n, size))
    return chol @ z


@pytest.fixture
def fgn_sample():
    return _fgn


@pytest.fixture
def fbm_path():
    def make(hurst, n, sigma=1.0, seed=0):
        return np.cumsum(_fgn(hurst, n, sigma, seed=seed))

    return make
