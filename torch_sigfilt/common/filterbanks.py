"""
Complex Wavelet & Short-Time Fourier Filterbanks
================================================

License:
    GNU General Public License v3.0 or later (GPLv3+)

This module generates discrete complex filters for time-frequency analysis:
Morlet wavelets with a frequency-dependent number of cycles, or
Hanning-tapered complex exponentials (short-time Fourier transform), and
applies them to signals.

The wavelet definition follows the conventional continuous Morlet wavelet
sampled at the signal rate,

.. math::
    \\psi_k(t) = A_k \\, e^{-t^2 / (2 \\sigma_{t,k}^2)} \\, e^{j 2 \\pi f_k t},
    \\qquad \\sigma_{f,k} = \\frac{f_k}{n_k}, \\quad
    \\sigma_{t,k} = \\frac{1}{2 \\pi \\sigma_{f,k}}, \\quad
    A_k = \\left( \\sigma_{t,k} \\sqrt{\\pi} \\right)^{-1/2}

where :math:`n_k` is the number of cycles at frequency :math:`f_k`.

References
----------
.. [1] A. Delorme and S. Makeig, "EEGLAB: an open source toolbox for analysis
       of single-trial EEG dynamics including independent component analysis,"
       *Journal of Neuroscience Methods*, vol. 134, no. 1, pp. 9-21, 2004,
       doi: 10.1016/j.jneumeth.2003.10.009.

.. [2] C. Tallon-Baudry, O. Bertrand, C. Delpuech, and J. Pernier,
       "Stimulus specificity of phase-locked and non-phase-locked 40 Hz visual
       responses in human," *Journal of Neuroscience*, vol. 16, no. 13,
       pp. 4240-4249, 1996.
"""

import math
from typing import List, Optional, Tuple, Union

import numpy as np
import torch
import torch.nn as nn

# ------------------------------------------------- Utilities ------------------------------------------------

def hanning(n: int,
            dtype: torch.dtype = torch.float64,
            device: Optional[torch.device] = None) -> torch.Tensor:
    r"""
    Symmetric Hanning window without zero end-points.

    .. math::
        w[k] = \frac{1}{2} \left( 1 - \cos\frac{2 \pi k}{n + 1} \right),
        \quad k = 1, \ldots, n

    Unlike ``torch.hann_window(n, periodic=False)``, the first and last samples
    are nonzero, so every sample of the window contributes.

    Parameters
    ----------
    n : int
        Window length.

    dtype : torch.dtype, optional
        Output data type. Default: torch.float64.

    device : torch.device, optional
        Output device. Default: None (current default device).

    Returns
    -------
    torch.Tensor
        Window of shape (n,), exactly symmetric.

    Examples
    --------
    >>> hanning(3)
    tensor([0.5000, 1.0000, 0.5000], dtype=torch.float64)
    """
    # First half (including the centre for odd n), then mirror
    k = torch.arange(1, (n + 1) // 2 + 1, dtype=dtype, device=device)
    w = 0.5 * (1.0 - torch.cos(2.0 * math.pi * k / (n + 1)))
    return torch.cat([w, torch.flip(w[:n // 2], dims=[0])])


def _time_support(half_width: float, sp: float,
                  dtype: torch.dtype, device: Optional[torch.device]) -> torch.Tensor:
    """Sample instants ``k * sp`` with ``|k * sp| <= half_width``, always an odd count."""
    n_half = int(math.floor(half_width / sp + 1e-10))
    return torch.arange(-n_half, n_half + 1, dtype=dtype, device=device) * sp


def dftfilt3(freqs: Union[torch.Tensor, np.ndarray, List[float]],
             cycles: Union[float, torch.Tensor, np.ndarray, List[float]],
             srate: float,
             cycleinc: str = 'linear',
             winsize: Optional[int] = None,
             timesupport: float = 7.0,
             dtype: torch.dtype = torch.float64,
             device: Optional[torch.device] = None
             ) -> Tuple[Union[List[torch.Tensor], torch.Tensor], torch.Tensor,
                        Optional[torch.Tensor], Optional[torch.Tensor]]:
    r"""
    Discrete complex wavelet (Morlet) or Hanning-tapered DFT filters.

    Parameters
    ----------
    freqs : array_like
        Frequencies of interest in Hz, shape (F,).

    cycles : float or array_like
        Number of cycles of each wavelet:

        - ``0``: Hanning tapered short-term FFT (requires ``winsize``)
        - single value > 0: same number of cycles at every frequency
        - two values: cycles at the lowest and at the highest frequency, with
          linear or log-linear interpolation in between (see ``cycleinc``)
        - F values: cycles for each frequency

    srate : float
        Sampling rate in Hz.

    cycleinc : {'linear', 'log'}, optional
        Interpolation mode when two cycle values are given. Default: ``'linear'``.

    winsize : int, optional
        Common window length in samples. Even values are incremented by one,
        windows are always odd. If given, the output is a (F, winsize) matrix
        instead of a list of variable-length wavelets. Default: None.

    timesupport : float, optional
        Number of temporal standard deviations spanned by a wavelet when
        ``winsize`` is not given. Default: 7.

    dtype : torch.dtype, optional
        Real data type of the computation. Default: torch.float64.

    device : torch.device, optional
        Output device. Default: None.

    Returns
    -------
    wavelets : list of torch.Tensor or torch.Tensor
        Complex filters. A list of F tensors of odd (frequency dependent)
        length when ``winsize`` is None, otherwise a (F, winsize) tensor.

    cycles : torch.Tensor
        Number of cycles used at each frequency, shape (F,) (the input value
        for Hanning windows).

    freqresol : torch.Tensor or None
        Frequency resolution :math:`2 \sigma_f` in Hz, shape (F,). None for
        Hanning windows.

    timeresol : torch.Tensor or None
        Temporal resolution :math:`2 \sigma_t` in seconds, shape (F,). None for
        Hanning windows.

    Raises
    ------
    ValueError
        If ``cycles`` is 0 and ``winsize`` is missing, if ``cycleinc`` is not
        'linear' or 'log', if ``cycles`` has an unsupported length, or if a
        Morlet wavelet gets a non-positive number of cycles.

    Examples
    --------
    >>> wavelets, cycles, freqresol, timeresol = dftfilt3([5.0, 10.0, 20.0], 3, 250.0)
    >>> [len(w) for w in wavelets]
    [167, 83, 41]
    >>> bank, _, _, _ = dftfilt3([5.0, 10.0, 20.0], [3, 6], 250.0, winsize=256)
    >>> bank.shape
    torch.Size([3, 257])
    """
    if cycleinc not in ('linear', 'log'):
        raise ValueError(f"cycleinc must be 'linear' or 'log', got '{cycleinc}'")

    if winsize is not None and winsize % 2 == 0:
        winsize = winsize + 1

    freqs = torch.as_tensor(freqs, dtype=dtype, device=device).reshape(-1)
    cycles = torch.as_tensor(cycles, dtype=dtype, device=device).reshape(-1)
    n_freqs = freqs.numel()

    hanning_window = bool(torch.all(cycles == 0))
    if hanning_window and winsize is None:
        raise ValueError("If you are using a Hanning tapered FFT, please supply winsize")

    # Number of cycles at each frequency
    if not hanning_window:
        if cycles.numel() == 1:
            cycles = cycles.expand(n_freqs).clone()
        elif cycles.numel() == 2:
            c_low, c_high = cycles[0].item(), cycles[1].item()
            if cycleinc == 'log':
                cycles = torch.exp(torch.linspace(math.log(c_low), math.log(c_high), n_freqs,
                                                  dtype=dtype, device=device))
            else:
                cycles = torch.linspace(c_low, c_high, n_freqs, dtype=dtype, device=device)
        elif cycles.numel() != n_freqs:
            raise ValueError(f"cycles must have 1, 2 or {n_freqs} values, got {cycles.numel()}")

        if torch.any(cycles <= 0):
            raise ValueError("Morlet wavelets require a positive number of cycles")

    sp = 1.0 / srate
    wavelets = []
    freqresol = []
    timeresol = []

    for index in range(n_freqs):
        fk = freqs[index].item()

        if hanning_window:
            t = _time_support(sp * winsize / 2, sp, dtype, device)
            wavelets.append(torch.exp(2j * math.pi * fk * t) * hanning(winsize, dtype=dtype, device=device))
            continue

        # Time and frequency standard deviations, normalization constant
        sigf = fk / cycles[index].item()
        sigt = 1.0 / (2.0 * math.pi * sigf)
        A = 1.0 / math.sqrt(sigt * math.sqrt(math.pi))
        timeresol.append(2.0 * sigt)
        freqresol.append(2.0 * sigf)

        if winsize is None:
            t = _time_support(sigt * timesupport / 2, sp, dtype, device)
        else:
            t = _time_support(sp * winsize / 2, sp, dtype, device)

        psi = A * torch.exp(-(t ** 2) / (2.0 * sigt ** 2)) * torch.exp(2j * math.pi * fk * t)
        wavelets.append(psi)

    if winsize is not None:
        wavelets = torch.stack(wavelets) if n_freqs > 0 else torch.zeros(0, winsize, dtype=torch.complex128)

    if hanning_window:
        return wavelets, cycles, None, None

    return (wavelets,
            cycles,
            torch.tensor(freqresol, dtype=dtype, device=device),
            torch.tensor(timeresol, dtype=dtype, device=device))

# ------------------------------------------------ Filterbanks ------------------------------------------------

class WaveletFilterbank(nn.Module):
    r"""
    Complex Morlet wavelet / Hanning STFT filterbank.

    Builds the filters with :func:`dftfilt3` at initialization and applies
    them to input signals by FFT convolution, producing complex time-frequency
    coefficients whose magnitude is the amplitude envelope and whose angle is
    the instantaneous phase in each band.

    Parameters
    ----------
    freqs : array_like
        Center frequencies in Hz, shape (F,).

    cycles : float or array_like
        Number of cycles (see :func:`dftfilt3`). ``0`` selects Hanning-tapered
        STFT windows and requires ``winsize``.

    fs : float
        Sampling rate in Hz.

    cycleinc : {'linear', 'log'}, optional
        Cycle interpolation mode. Default: ``'linear'``.

    winsize : int, optional
        Common window length in samples. Default: None (frequency dependent
        Morlet lengths).

    timesupport : float, optional
        Wavelet length in temporal standard deviations. Default: 7.

    dtype : torch.dtype, optional
        Real data type; filters are stored with the matching complex type.
        Default: torch.float32.

    Attributes
    ----------
    wavelets : torch.Tensor
        Complex filters, zero-padded and centred, shape (F, L) with L odd.

    lengths : torch.Tensor
        Length of each filter before padding, shape (F,).

    freqresol, timeresol : torch.Tensor or None
        Morlet frequency (Hz) and time (s) resolutions, shape (F,).

    Shape
    -----
    - Input: :math:`(B, T)` or :math:`(T,)`
    - Output: :math:`(B, F, T)` or :math:`(F, T)`, complex

    Examples
    --------
    >>> import torch
    >>> fb = WaveletFilterbank(freqs=[4.0, 8.0, 16.0, 32.0], cycles=[3, 8], fs=250.0)
    >>> eeg = torch.randn(2, 1000)
    >>> tf = fb(eeg)
    >>> tf.shape, tf.dtype
    (torch.Size([2, 4, 1000]), torch.complex64)
    >>> power = tf.abs() ** 2

    Notes
    -----
    The output is aligned with the input ("same" convolution): the centre
    sample of each filter corresponds to time zero, so no delay is introduced.
    """

    def __init__(self,
                 freqs: Union[torch.Tensor, np.ndarray, List[float]],
                 cycles: Union[float, torch.Tensor, np.ndarray, List[float]],
                 fs: float,
                 cycleinc: str = 'linear',
                 winsize: Optional[int] = None,
                 timesupport: float = 7.0,
                 dtype: torch.dtype = torch.float32):
        super().__init__()

        if torch.as_tensor(freqs).numel() == 0:
            raise ValueError("freqs must contain at least one frequency")

        self.fs = fs
        self.cycleinc = cycleinc
        self.timesupport = timesupport
        self.dtype = dtype
        complex_dtype = torch.complex128 if dtype == torch.float64 else torch.complex64

        # Design in double precision, store in the requested precision
        wavelets, cycles_used, freqresol, timeresol = dftfilt3(freqs, cycles, fs,
                                                               cycleinc=cycleinc,
                                                               winsize=winsize,
                                                               timesupport=timesupport,
                                                               dtype=torch.float64,
                                                               device=torch.device('cpu'))
        self.winsize = None if winsize is None else wavelets.shape[-1]
        self.is_morlet = freqresol is not None

        if isinstance(wavelets, list):
            lengths = [w.shape[-1] for w in wavelets]
            max_len = max(lengths)
            bank = torch.zeros(len(wavelets), max_len, dtype=torch.complex128)
            for i, w in enumerate(wavelets):
                offset = (max_len - lengths[i]) // 2
                bank[i, offset:offset + lengths[i]] = w
        else:
            bank = wavelets
            lengths = [bank.shape[-1]] * bank.shape[0]

        self.num_channels = bank.shape[0]

        self.register_buffer('freqs', torch.as_tensor(freqs, dtype=torch.float64, device=torch.device('cpu')).reshape(-1).to(dtype))
        self.register_buffer('cycles', cycles_used.to(dtype))
        self.register_buffer('wavelets', bank.to(complex_dtype))
        self.register_buffer('lengths', torch.tensor(lengths, dtype=torch.long))
        self.register_buffer('freqresol', None if freqresol is None else freqresol.to(dtype))
        self.register_buffer('timeresol', None if timeresol is None else timeresol.to(dtype))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Apply every filter of the bank to the input signal.

        Parameters
        ----------
        x : torch.Tensor
            Input signal, shape (batch, time) or (time,). Real or complex.

        Returns
        -------
        torch.Tensor
            Complex coefficients, shape (batch, F, time) or (F, time).
        """
        if x.ndim == 1:
            x = x.unsqueeze(0)
            squeeze_output = True
        elif x.ndim == 2:
            squeeze_output = False
        else:
            raise ValueError(f"Expected input shape (batch, time) or (time,), got {tuple(x.shape)}")

        siglen = x.shape[-1]
        filt_len = self.wavelets.shape[-1]

        # Linear convolution length, rounded up to a power of 2
        fft_len = siglen + filt_len - 1
        fft_len = 2 ** int(math.ceil(math.log2(fft_len)))

        X = torch.fft.fft(x.to(self.wavelets.dtype), n=fft_len, dim=-1)  # [B, fft_len]
        W = torch.fft.fft(self.wavelets, n=fft_len, dim=-1)              # [F, fft_len]
        y = torch.fft.ifft(X.unsqueeze(1) * W.unsqueeze(0), dim=-1)      # [B, F, fft_len]

        # Centre the odd-length filters on time zero
        start = (filt_len - 1) // 2
        y = y[:, :, start:start + siglen]

        if squeeze_output:
            y = y.squeeze(0)

        return y

    def extra_repr(self) -> str:
        """
        Extra representation string for module printing.

        Returns
        -------
        str
            String containing key module parameters.
        """
        kind = 'morlet' if self.is_morlet else 'hanning'
        return (f"num_channels={self.num_channels}, fs={self.fs}, type={kind}, "
                f"filter_length={self.wavelets.shape[-1]}, winsize={self.winsize}")
