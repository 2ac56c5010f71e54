from ._base import CancellationToken, GridScanResult, HurstEstimate, OptimMethod
from .fbm import fgn_covariance, fgn_log_likelihood, fgn_mle, powlaw_estim
from .rolling import Traversal, rolling_estimate, rolling_frame
from .scalogram import bspline_scalogram_estim, gen_bspline_scalogram_estim, scalogram
from .wavelet import (
    FitVariables,
    bspline_covmat,
    bspline_log_likelihood,
    bspline_mle,
    partial_bspline_covmat,
    partial_wavelet_log_likelihood,
    partial_wavelet_mle,
    partial_wavelet_objective,
)

__all__ = [
    "HurstEstimate",
    "OptimMethod",
    "GridScanResult",
    "CancellationToken",
    "fgn_covariance",
    "fgn_log_likelihood",
    "fgn_mle",
    "powlaw_estim",
    "FitVariables",
    "bspline_covmat",
    "partial_bspline_covmat",
    "bspline_log_likelihood",
    "bspline_mle",
    "partial_wavelet_log_likelihood",
    "partial_wavelet_objective",
    "partial_wavelet_mle",
    "scalogram",
    "bspline_scalogram_estim",
    "gen_bspline_scalogram_estim",
    "Traversal",
    "rolling_estimate",
    "rolling_frame",
]
