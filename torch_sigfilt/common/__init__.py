"""Reusable filtering building blocks."""

from torch_sigfilt.common.filters import (
    ArgumentError,
    apply_iir_pytorch,
    filtfilt,
    filtfilt_zi,
    IIRFilter,
    ZeroPhaseFilter,
    ButterworthFilter,
)
from torch_sigfilt.common.filterbanks import (
    hanning,
    dftfilt3,
    WaveletFilterbank,
)

__all__ = ["ArgumentError",
           "apply_iir_pytorch",
           "filtfilt",
           "filtfilt_zi",
           "IIRFilter",
           "ZeroPhaseFilter",
           "ButterworthFilter",
           "hanning",
           "dftfilt3",
           "WaveletFilterbank"
           ]
