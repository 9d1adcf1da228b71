"""
Linear and Zero-Phase Filtering
===============================

PyTorch-native implementations of recursive (IIR/FIR) filtering and
forward-backward zero-phase filtering with GPU acceleration and gradient flow
support.

License:
    GNU General Public License v3.0 or later (GPLv3+)

Contents
--------

**Linear Filtering:**
    - `apply_iir_pytorch`: Direct Form II Transposed filtering with optional initial state
    - `IIRFilter`: nn.Module wrapper for causal (single pass) IIR filtering
    - `_lfilter_rows`: Batched Direct Form II Transposed helper

**Zero-Phase Filtering:**
    - `filtfilt`: Forward-backward filtering, ``y = filtfilt(b, a, x)``
    - `filtfilt_zi`: Steady-state initial conditions (Likhterov & Kopeika, 2003)
    - `ZeroPhaseFilter`: nn.Module wrapper for zero-phase filtering
    - `_filtfilt_rows`: Batched reflection-padded forward-backward helper

**Parametric Filters:**
    - `ButterworthFilter`: Butterworth lowpass/highpass/bandpass/bandstop filter

Design Philosophy
-----------------
- **GPU-Friendly**: All operations use PyTorch tensors for CUDA/MPS acceleration
- **Gradient-Safe**: The filter state is never updated in place
- **Data-Parallel**: Independent signals are stacked and filtered in a single
  vectorized time loop

Filter coefficient design (e.g., `scipy.signal.butter`) is performed only during
initialization using scipy. Forward passes use pure PyTorch operations.

References
----------
.. [1] N. Likhterov and N. S. Kopeika, "Hardware-efficient technique for
       minimizing startup transients in Direct Form II digital filters,"
       *International Journal of Electronics*, vol. 90, no. 10, pp. 607-615, 2003.

.. [2] F. Gustafsson, "Determining the initial states in forward-backward
       filtering," *IEEE Transactions on Signal Processing*, vol. 44, no. 4,
       pp. 988-992, 1996.

See Also
--------
- `torch_sigfilt.common.filterbanks`: Complex wavelet / STFT filterbanks
"""

import warnings
from typing import Optional, Tuple, Union, List

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F
from scipy.signal import butter


ArrayLike = Union[torch.Tensor, np.ndarray, List[float], Tuple[float, ...]]


class ArgumentError(TypeError):
    """Raised when :func:`filtfilt` is called with the wrong number of arguments."""

# ------------------------------------------------- Utilities ------------------------------------------------

def _as_coefficients(c: ArrayLike, name: str,
                     dtype: Optional[torch.dtype] = None,
                     device: Optional[torch.device] = None) -> torch.Tensor:
    """
    Convert a coefficient vector to a flat tensor.

    Row ``(1, n)``, column ``(n, 1)`` and flat ``(n,)`` inputs all map to the
    same ordered sequence of length ``n``.
    """
    c = _to_tensor(c)
    if dtype is not None:
        c = c.to(dtype=dtype)
    if device is not None:
        c = c.to(device=device)

    if c.ndim > 2 or (c.ndim == 2 and min(c.shape) != 1):
        raise ValueError(f"'{name}' must be a vector, got shape {tuple(c.shape)}")

    c = c.reshape(-1)
    if c.numel() == 0:
        raise ValueError(f"'{name}' must contain at least one coefficient")

    return c


def _to_tensor(v: ArrayLike) -> torch.Tensor:
    """
    Convert to a floating point (or complex) tensor.

    Tensors keep their dtype (integer tensors get the default dtype). Other
    inputs go through NumPy, so Python scalars and lists become float64.
    """
    if isinstance(v, torch.Tensor):
        if not (v.is_floating_point() or v.is_complex()):
            v = v.to(dtype=torch.get_default_dtype())
        return v

    v = np.asarray(v)
    if v.dtype.kind not in 'fc':
        v = v.astype(np.float64)
    return torch.as_tensor(v)


def _compute_dtype(x: torch.Tensor, b: torch.Tensor, a: torch.Tensor) -> torch.dtype:
    """Promoted dtype of signal and coefficients, never below the coefficients' precision."""
    dtype = torch.promote_types(torch.promote_types(x.dtype, b.dtype), a.dtype)
    # MPS has no double precision
    if x.device.type == 'mps' and dtype == torch.float64:
        dtype = torch.float32
    return dtype


def _pad_coefficients(b: torch.Tensor, a: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
    """Zero-pad the shorter of ``b`` and ``a`` at its tail to ``n = max(len(b), len(a))``."""
    n = max(b.shape[0], a.shape[0])
    if b.shape[0] < n:
        b = F.pad(b, (0, n - b.shape[0]))
    if a.shape[0] < n:
        a = F.pad(a, (0, n - a.shape[0]))
    return b, a


def _steady_state(b: torch.Tensor, a: torch.Tensor) -> torch.Tensor:
    """
    Steady-state delay line of equal-length coefficients, shape (n - 1,).

    Falls back to zeros when the DC gain ``sum(b) / sum(a)`` is not finite.
    """
    kdc = b.sum() / a.sum()
    if torch.isfinite(kdc):
        # Reversed cumulative sum: si[k] = sum_{j >= k} (b[j] - kdc * a[j])
        si = torch.flip(torch.cumsum(torch.flip(b - kdc * a, dims=[0]), dim=0), dims=[0])
        # The recursion runs on coefficients normalized by a[0]
        si = si / a[0]
    else:
        si = torch.zeros_like(a)
    return si[1:]

# -------------------------------------------------- Kernels ------------------------------------------------

def _lfilter_rows(x: torch.Tensor, b: torch.Tensor, a: torch.Tensor,
                  zi: Optional[torch.Tensor] = None) -> torch.Tensor:
    """
    Filter a batch of signals using Direct Form II Transposed.

    Vectorized over signals: one loop over time processes every row at once.
    The state is rebuilt at each step (no in-place updates) so gradients flow
    through both the signal and the coefficients.

    Parameters
    ----------
    x : torch.Tensor
        Input signals, shape (n_signals, T).

    b : torch.Tensor
        Numerator coefficients, shape (n_b,).

    a : torch.Tensor
        Denominator coefficients, shape (n_a,).

    zi : torch.Tensor, optional
        Initial delay line, shape (n_signals, n - 1) with ``n = max(n_b, n_a)``.
        Default: zeros.

    Returns
    -------
    torch.Tensor
        Filtered signals, shape (n_signals, T).
    """
    # Normalize by a[0]
    a0 = a[0]
    b = b / a0
    a = a / a0
    b, a = _pad_coefficients(b, a)

    n_signals, T = x.shape
    n_state = b.shape[0] - 1

    if n_state == 0:
        # Pure gain
        return b[0] * x

    if zi is None:
        z = torch.zeros(n_signals, n_state, dtype=x.dtype, device=x.device)
    else:
        z = zi.to(dtype=x.dtype, device=x.device)

    b_tail = b[1:].unsqueeze(0)  # [1, n_state]
    a_tail = a[1:].unsqueeze(0)  # [1, n_state]

    y_list = []
    for n in range(T):
        x_n = x[:, n:n + 1]  # [n_signals, 1]

        # y[n] = b[0] * x[n] + z[0]
        y_n = b[0] * x_n + z[:, :1]
        y_list.append(y_n)

        # z[k] = b[k+1] * x[n] - a[k+1] * y[n] + z[k+1], with z[n_state] = 0
        z = torch.cat([z[:, 1:], torch.zeros_like(z[:, :1])], dim=1) + b_tail * x_n - a_tail * y_n

    return torch.cat(y_list, dim=1)


def _filtfilt_rows(x: torch.Tensor, b: torch.Tensor, a: torch.Tensor) -> torch.Tensor:
    """
    Zero-phase filter a batch of signals along the last axis.

    Parameters
    ----------
    x : torch.Tensor
        Input signals, shape (n_signals, T).

    b, a : torch.Tensor
        Coefficient vectors (any lengths), same dtype/device as ``x``.

    Returns
    -------
    torch.Tensor
        Filtered signals, shape (n_signals, T).

    Raises
    ------
    ValueError
        If ``T <= 3 * (n - 1)``, i.e. the signal is too short to be reflected.
    """
    b, a = _pad_coefficients(b, a)
    n = b.shape[0]
    lrefl = 3 * (n - 1)
    lx = x.shape[-1]

    if lx <= lrefl:
        raise ValueError(f"Signal length ({lx}) must be greater than 3 * filter order ({lrefl})")
    if a[0] == 0:
        warnings.warn("Leading denominator coefficient a[0] is zero, the filter output will not be finite")

    si = _steady_state(b, a).unsqueeze(0)  # [1, n - 1]

    # Odd reflection about the first and last samples
    head = 2 * x[:, :1] - torch.flip(x[:, 1:lrefl + 1], dims=[-1])
    tail = 2 * x[:, -1:] - torch.flip(x[:, lx - lrefl - 1:lx - 1], dims=[-1])
    v = torch.cat([head, x, tail], dim=-1)

    # Forward pass, starting in steady state for a constant input v[0]
    v = _lfilter_rows(v, b, a, zi=si * v[:, :1])

    # Backward pass
    v = torch.flip(v, dims=[-1])
    v = _lfilter_rows(v, b, a, zi=si * v[:, :1])
    v = torch.flip(v, dims=[-1])

    return v[:, lrefl:lrefl + lx]

# --------------------------------------------------- Public ------------------------------------------------

def apply_iir_pytorch(x: torch.Tensor, b: torch.Tensor, a: torch.Tensor,
                      zi: Optional[torch.Tensor] = None) -> torch.Tensor:
    """
    Apply IIR filter using PyTorch native implementation.

    Applies standard IIR filtering with arbitrary order coefficients along the
    last axis using the Direct Form II Transposed structure:

    .. math::
        y[n] &= b_0 x[n] + z_0[n-1] \\\\
        z_k[n] &= b_{k+1} x[n] - a_{k+1} y[n] + z_{k+1}[n-1]

    after normalization of ``b`` and ``a`` by ``a[0]``.

    Parameters
    ----------
    x : torch.Tensor
        Input signal, shape (time,), (channels, time) or (batch, channels, time).

    b : torch.Tensor
        Numerator coefficients.

    a : torch.Tensor
        Denominator coefficients. ``a[0]`` must be nonzero.

    zi : torch.Tensor, optional
        Initial delay line of length ``max(len(a), len(b)) - 1``. Either shape
        (n - 1,), shared by every signal, or ``x.shape[:-1] + (n - 1,)``.
        Default: ``None`` (zero initial state).

    Returns
    -------
    torch.Tensor
        Filtered signal, same shape as input. The dtype is the promotion of
        the dtypes of ``x``, ``b`` and ``a``.

    Notes
    -----
    Numerically equivalent to ``scipy.signal.lfilter(b, a, x, zi=zi)[0]``
    within machine precision.

    Examples
    --------
    >>> import torch
    >>> b = torch.tensor([0.5, 0.5])
    >>> a = torch.tensor([1.0, -0.3])
    >>> y = apply_iir_pytorch(torch.randn(2, 100), b, a)
    >>> y.shape
    torch.Size([2, 100])
    """
    original_shape = x.shape

    # Handle different input shapes
    if x.ndim == 1:
        x = x.unsqueeze(0).unsqueeze(0)
    elif x.ndim == 2:
        x = x.unsqueeze(0)
    elif x.ndim != 3:
        raise ValueError(f"Input must be 1D, 2D, or 3D, got shape {original_shape}")

    b = _as_coefficients(b, 'b')
    a = _as_coefficients(a, 'a')
    dtype = _compute_dtype(x, b, a)
    x = x.to(dtype=dtype)
    b = b.to(dtype=dtype, device=x.device)
    a = a.to(dtype=dtype, device=x.device)

    batch_size, num_channels, sig_len = x.shape
    n_state = max(b.shape[0], a.shape[0]) - 1

    # Flatten batch and channels
    x_flat = x.reshape(-1, sig_len)

    if zi is not None:
        zi = _to_tensor(zi).to(dtype=x.dtype, device=x.device)
        zi = zi.expand(batch_size, num_channels, n_state).reshape(-1, n_state)

    y_flat = _lfilter_rows(x_flat, b, a, zi=zi)

    # Restore original shape
    return y_flat.reshape(original_shape)


def filtfilt_zi(b: ArrayLike, a: ArrayLike) -> torch.Tensor:
    r"""
    Steady-state initial conditions for forward-backward filtering.

    Computes the delay line of a Direct Form II Transposed filter in steady
    state for a unit constant input, following Likhterov & Kopeika (2003):

    .. math::
        k_{DC} = \frac{\sum_j b_j}{\sum_j a_j}, \qquad
        s_k = \frac{1}{a_0} \sum_{j > k} \left( b_j - k_{DC} a_j \right),
        \quad k = 0, \ldots, n - 2

    Scaling the result by the first input sample makes a filter start as if it
    had been fed that value forever, which removes start-up transients.

    Parameters
    ----------
    b : array_like
        Numerator coefficients, shape (n_b,), (1, n_b) or (n_b, 1).

    a : array_like
        Denominator coefficients, shape (n_a,), (1, n_a) or (n_a, 1).

    Returns
    -------
    torch.Tensor
        Initial state, shape (max(n_b, n_a) - 1,). All zeros when the DC gain
        is not finite (e.g. ``sum(a) == 0``).

    Notes
    -----
    For stable filters this equals ``scipy.signal.lfilter_zi(b, a)``, without
    the linear solve.
    """
    b = _as_coefficients(b, 'b')
    a = _as_coefficients(a, 'a')
    dtype = torch.promote_types(b.dtype, a.dtype)
    b, a = _pad_coefficients(b.to(dtype), a.to(dtype=dtype, device=b.device))
    return _steady_state(b, a)


def filtfilt(*args, **kwargs) -> torch.Tensor:
    """
    Zero-phase forward and reverse digital IIR filtering.

    Usage: ``y = filtfilt(b, a, x)``

    Filters ``x`` forward, then backward, which cancels the phase distortion
    of a single pass and squares the magnitude response. End effects are
    reduced by extending the signal with an odd reflection of ``3 * (n - 1)``
    samples at each end, and by starting both passes from the steady state of
    the filter (see :func:`filtfilt_zi`).

    Parameters
    ----------
    b : array_like
        Numerator coefficients (row, column or flat vector).

    a : array_like
        Denominator coefficients (row, column or flat vector).

    x : array_like
        Signal. Shape (T,) for a single signal, (T, n_columns) for independent
        columns, or (1, T) for a row vector.

    Returns
    -------
    torch.Tensor
        Filtered signal with the shape (and orientation) of ``x``. Computed
        and returned in the promoted dtype of ``x``, ``b`` and ``a``; plain
        sequences are read as float64.

    Raises
    ------
    ArgumentError
        If not called with exactly three positional arguments (keywords
        included).

    ValueError
        If the coefficients are empty or not vectors, if ``x`` has more than
        two dimensions, or if the signal is not longer than ``3 * (n - 1)``.

    Notes
    -----
    In practice the phase correction is not perfect, and the magnitude
    response is distorted, particularly in the stop band.

    If the DC gain ``sum(b) / sum(a)`` is not finite the initial state falls
    back to zeros instead of failing.

    Columns are filtered independently as one batch, so
    ``filtfilt(b, a, [c1, c2])`` equals the column-wise concatenation of
    ``filtfilt(b, a, c1)`` and ``filtfilt(b, a, c2)``.

    Examples
    --------
    >>> import torch
    >>> from scipy.signal import butter
    >>> b, a = butter(3, 0.1)
    >>> t = torch.arange(0, 1.01, 0.01, dtype=torch.float64)
    >>> x = torch.sin(2 * torch.pi * t * 2.3) + 0.25 * torch.randn_like(t)
    >>> y = filtfilt(b, a, x)
    >>> y.shape
    torch.Size([101])
    """
    if kwargs or len(args) != 3:
        raise ArgumentError("usage: y = filtfilt(b, a, x)")

    b, a, x = args
    x = _to_tensor(x)
    b = _as_coefficients(b, 'b')
    a = _as_coefficients(a, 'a')

    # Never filter below the precision of the coefficients
    dtype = _compute_dtype(x, b, a)
    x = x.to(dtype=dtype)
    b = b.to(dtype=dtype, device=x.device)
    a = a.to(dtype=dtype, device=x.device)

    original_shape = x.shape

    if x.ndim <= 1:
        y = _filtfilt_rows(x.reshape(1, -1), b, a)
        return y.reshape(original_shape)
    elif x.ndim == 2:
        if x.shape[0] == 1:
            # Row vector: filter along its length, keep the row orientation
            return _filtfilt_rows(x, b, a)
        # One row per column
        y = _filtfilt_rows(x.t(), b, a)
        return y.t().contiguous()
    else:
        raise ValueError(f"Input must be a vector or a 2D matrix, got shape {tuple(original_shape)}")

# -------------------------------------------------- Filters ------------------------------------------------

class IIRFilter(nn.Module):
    """
    Apply IIR filter with ba coefficients (single causal pass).

    Parameters
    ----------
    b : torch.Tensor
        Numerator coefficients, shape (n_b,).

    a : torch.Tensor
        Denominator coefficients, shape (n_a,).

    learnable : bool, optional
        If True, coefficients become trainable. Default: ``False``.

    steady_state : bool, optional
        If True, the delay line is initialized with :func:`filtfilt_zi` scaled
        by the first sample of each signal, so that a constant input produces
        no start-up transient. Default: ``False`` (zero initial state).

    Shape
    -----
    - Input: :math:`(B, C, T)`, :math:`(C, T)`, or :math:`(T,)`
    - Output: Same shape as input

    Examples
    --------
    >>> import torch
    >>> from scipy.signal import butter
    >>> b, a = butter(1, 3.0, btype='high', fs=48000)
    >>> filt = IIRFilter(torch.tensor(b, dtype=torch.float32),
    ...                  torch.tensor(a, dtype=torch.float32))
    >>> output = filt(torch.randn(2, 5, 1000))

    See Also
    --------
    ZeroPhaseFilter : Forward-backward application of the same coefficients
    """

    def __init__(self, b: torch.Tensor, a: torch.Tensor, learnable: bool = False,
                 steady_state: bool = False):
        super().__init__()

        if b.ndim != 1 or a.ndim != 1:
            raise ValueError("b and a must be 1D tensors")

        self.steady_state = steady_state

        if learnable:
            self.b = nn.Parameter(b)
            self.a = nn.Parameter(a)
        else:
            self.register_buffer('b', b)
            self.register_buffer('a', a)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Apply IIR filter.

        Parameters
        ----------
        x : torch.Tensor
            Input signal, shape (batch, channels, time) or (channels, time) or (time,).

        Returns
        -------
        torch.Tensor
            Filtered signal, same shape as input.
        """
        zi = None
        if self.steady_state:
            zi = filtfilt_zi(self.b, self.a).to(dtype=x.dtype) * x[..., :1]
        return apply_iir_pytorch(x, self.b, self.a, zi=zi)

    def extra_repr(self) -> str:
        """
        Extra representation string for module printing.

        Returns
        -------
        str
            String containing key module parameters.
        """
        return f"n_b={len(self.b)}, n_a={len(self.a)}, steady_state={self.steady_state}"


class ZeroPhaseFilter(nn.Module):
    """
    Zero-phase forward-backward IIR filter.

    Module form of :func:`filtfilt` operating along the last axis, so it fits
    the ``(batch, channels, time)`` layout of the other modules.

    Parameters
    ----------
    b : torch.Tensor
        Numerator coefficients, shape (n_b,).

    a : torch.Tensor
        Denominator coefficients, shape (n_a,).

    learnable : bool, optional
        If True, coefficients become trainable parameters. Default: ``False``.

    dtype : torch.dtype, optional
        Data type of the stored coefficients. Default: torch.float32.

    Attributes
    ----------
    b, a : torch.Tensor or nn.Parameter
        Filter coefficients.

    order : int
        Filter order, ``max(n_b, n_a) - 1``.

    Shape
    -----
    - Input: :math:`(B, C, T)`, :math:`(C, T)`, or :math:`(T,)` with
      :math:`T > 3 \\cdot \\text{order}`
    - Output: Same shape as input

    Examples
    --------
    >>> import torch
    >>> from scipy.signal import butter
    >>> b, a = butter(2, 0.2)
    >>> zpf = ZeroPhaseFilter(torch.tensor(b), torch.tensor(a))
    >>> zpf(torch.randn(4, 2, 500)).shape
    torch.Size([4, 2, 500])

    Notes
    -----
    The effective transfer function is :math:`|H(e^{j\\omega})|^2`: zero phase,
    squared magnitude (see :meth:`get_frequency_response`).
    """

    def __init__(self, b: torch.Tensor, a: torch.Tensor, learnable: bool = False,
                 dtype: torch.dtype = torch.float32):
        super().__init__()

        b = _as_coefficients(b, 'b', dtype=dtype)
        a = _as_coefficients(a, 'a', dtype=dtype)

        self.order = max(len(b), len(a)) - 1
        self.learnable = learnable

        if learnable:
            self.b = nn.Parameter(b)
            self.a = nn.Parameter(a)
        else:
            self.register_buffer('b', b)
            self.register_buffer('a', a)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Apply zero-phase filtering along the last axis.

        Parameters
        ----------
        x : torch.Tensor
            Input signal, shape (batch, channels, time) or (channels, time) or (time,).

        Returns
        -------
        torch.Tensor
            Filtered signal, same shape as input.
        """
        original_shape = x.shape
        if x.ndim not in (1, 2, 3):
            raise ValueError(f"Input must be 1D, 2D, or 3D, got shape {original_shape}")

        x_flat = x.reshape(-1, original_shape[-1])
        y_flat = _filtfilt_rows(x_flat, self.b.to(dtype=x.dtype), self.a.to(dtype=x.dtype))

        return y_flat.reshape(original_shape)

    def get_frequency_response(self, nfft: int = 8192, fs: float = 2.0) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Compute the effective (forward-backward) frequency response.

        Parameters
        ----------
        nfft : int, optional
            Number of FFT points. Default: 8192.

        fs : float, optional
            Sampling rate in Hz. Default: 2.0 (frequencies normalized to Nyquist = 1).

        Returns
        -------
        freqs : torch.Tensor
            Frequency vector of shape ``[nfft//2 + 1]``.

        response : torch.Tensor
            Real, non-negative response :math:`|H|^2` of shape ``[nfft//2 + 1]``.
        """
        B = torch.fft.rfft(self.b, n=nfft)
        A = torch.fft.rfft(self.a, n=nfft)
        H = B / A
        freqs = torch.linspace(0, fs / 2, nfft // 2 + 1, device=H.device)

        return freqs, (H * H.conj()).real

    def extra_repr(self) -> str:
        """
        Extra representation string for module printing.

        Returns
        -------
        str
            String containing key module parameters.
        """
        return f"order={self.order}, learnable={self.learnable}"


class ButterworthFilter(nn.Module):
    """
    Butterworth IIR filter with GPU-accelerated application.

    Designs Butterworth ba coefficients using scipy.signal.butter in __init__,
    then applies them with PyTorch operations, either forward-backward
    (zero phase, default) or as a single causal pass.

    Parameters
    ----------
    order : int
        Filter order. Typical values: 1-8. Forward-backward application doubles
        the effective order.

    cutoff : float or tuple of float
        Cutoff frequency/frequencies in Hz:

        - For lowpass/highpass: single float (cutoff frequency)
        - For bandpass/bandstop: tuple of two floats (low, high)

    fs : float
        Sampling rate in Hz.

    btype : {'low', 'high', 'band', 'bandstop'}, optional
        Filter type. Default: ``'low'``.

    zero_phase : bool, optional
        If True, apply with :func:`filtfilt` semantics (no phase distortion,
        squared magnitude). If False, apply a single causal pass starting from
        steady state. Default: ``True``.

    learnable : bool, optional
        If True, ba coefficients become trainable parameters. Default: ``False``.

    dtype : torch.dtype, optional
        Data type for coefficients. Default: torch.float64 (ba recursions of
        higher orders are sensitive to rounding).

    Shape
    -----
    - Input: :math:`(B, C, T)`, :math:`(C, T)`, or :math:`(T,)`
    - Output: Same shape as input

    Examples
    --------
    >>> import torch
    >>> filt = ButterworthFilter(order=4, cutoff=[0.5, 4.0], fs=250.0, btype='band')
    >>> eeg = torch.randn(3, 2500, dtype=torch.float64)
    >>> delta = filt(eeg)
    >>> delta.shape
    torch.Size([3, 2500])
    """

    def __init__(self,
                 order: int,
                 cutoff: Union[float, Tuple[float, float], List[float]],
                 fs: float,
                 btype: str = 'low',
                 zero_phase: bool = True,
                 learnable: bool = False,
                 dtype: torch.dtype = torch.float64):
        super().__init__()

        self.order = order
        self.cutoff = list(cutoff) if isinstance(cutoff, (list, tuple)) else [cutoff]
        self.fs = fs
        self.btype = btype
        self.zero_phase = zero_phase
        self.learnable = learnable
        self.dtype = dtype

        self._design_filter()

    def _design_filter(self):
        """Design Butterworth ba coefficients using scipy."""
        if self.btype in ['low', 'high']:
            if len(self.cutoff) != 1:
                raise ValueError(f"'{self.btype}' filter requires single cutoff frequency")
            cutoff_scipy = self.cutoff[0]
        elif self.btype in ['band', 'bandstop']:
            if len(self.cutoff) != 2:
                raise ValueError(f"'{self.btype}' filter requires two cutoff frequencies")
            cutoff_scipy = list(self.cutoff)
        else:
            raise ValueError(f"Unknown btype: {self.btype}")

        try:
            b, a = butter(self.order, cutoff_scipy, btype=self.btype, fs=self.fs)
        except ValueError as e:
            raise ValueError(f"Failed to design Butterworth filter: {e}") from e

        b_tensor = torch.tensor(b, dtype=self.dtype)
        a_tensor = torch.tensor(a, dtype=self.dtype)

        if self.learnable:
            self.b = nn.Parameter(b_tensor)
            self.a = nn.Parameter(a_tensor)
        else:
            self.register_buffer('b', b_tensor)
            self.register_buffer('a', a_tensor)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Apply Butterworth filter to input signal.

        Parameters
        ----------
        x : torch.Tensor
            Input signal, shape (batch, channels, time) or (channels, time) or (time,).

        Returns
        -------
        torch.Tensor
            Filtered signal, same shape as input.
        """
        b = self.b.to(dtype=x.dtype)
        a = self.a.to(dtype=x.dtype)

        if self.zero_phase:
            original_shape = x.shape
            y_flat = _filtfilt_rows(x.reshape(-1, original_shape[-1]), b, a)
            return y_flat.reshape(original_shape)

        zi = filtfilt_zi(b, a) * x[..., :1]
        return apply_iir_pytorch(x, b, a, zi=zi)

    def extra_repr(self) -> str:
        """
        Extra representation string for module printing.

        Returns
        -------
        str
            String containing key module parameters.
        """
        cutoff_str = f"{self.cutoff[0]:.1f}" if len(self.cutoff) == 1 else f"[{self.cutoff[0]:.1f}, {self.cutoff[1]:.1f}]"
        return (f"order={self.order}, cutoff={cutoff_str} Hz, fs={self.fs}, "
                f"btype={self.btype}, zero_phase={self.zero_phase}, learnable={self.learnable}")
