from importlib.metadata import version

try:
    __version__ = version("fracfin")
except Exception:
    __version__ = "0.0.0"

from .covariance import (  # noqa
    PartialCorrelationMethod,
    autocov_matrix,
    autocov_sequence,
    conditional_mean_and_covariance,
    is_regular_grid,
    levinson_durbin,
    partial_autocorrelation,
)
from .errors import (  # noqa
    CapabilityError,
    ContractError,
    EstimationCancelled,
    FracFinError,
    IncompatibleScalesError,
)
from .estimators import (  # noqa
    CancellationToken,
    HurstEstimate,
    OptimMethod,
    Traversal,
    bspline_mle,
    bspline_scalogram_estim,
    fgn_mle,
    gen_bspline_scalogram_estim,
    partial_wavelet_mle,
    powlaw_estim,
    rolling_estimate,
)
from .likelihood import log_likelihood, quadratic_form, safe_eigen  # noqa
from .models import (  # noqa
    FractionalBrownianMotion,
    FractionalGaussianNoise,
    FractionalIntegrated,
)
from .wavelet import ConvolutionMode, bspline_dcwt, c1rho  # noqa

__all__ = [
    "FracFinError",
    "ContractError",
    "IncompatibleScalesError",
    "CapabilityError",
    "EstimationCancelled",
    "FractionalBrownianMotion",
    "FractionalGaussianNoise",
    "FractionalIntegrated",
    "is_regular_grid",
    "autocov_matrix",
    "autocov_sequence",
    "conditional_mean_and_covariance",
    "levinson_durbin",
    "partial_autocorrelation",
    "PartialCorrelationMethod",
    "safe_eigen",
    "quadratic_form",
    "log_likelihood",
    "ConvolutionMode",
    "c1rho",
    "bspline_dcwt",
    "HurstEstimate",
    "OptimMethod",
    "Traversal",
    "CancellationToken",
    "fgn_mle",
    "powlaw_estim",
    "bspline_mle",
    "partial_wavelet_mle",
    "bspline_scalogram_estim",
    "gen_bspline_scalogram_estim",
    "rolling_estimate",
]
