"""
Zero-Phase Filtering (filtfilt) - Test Suite

Contents:
1. test_filtfilt_arity: Usage errors on wrong argument count
2. test_filtfilt_lowpass_noise: 3rd-order Butterworth lowpass on white noise (+ figure)
3. test_filtfilt_high_order_bandpass_row: 10th-order band-pass on a row, tensor and plain list inputs
4. test_filtfilt_shapes_and_orientation: Vector, row and column-matrix inputs
5. test_filtfilt_column_independence: Multi-column input vs one column at a time
6. test_filtfilt_coefficient_orientation: Row vs column coefficient vectors
7. test_filtfilt_degenerate_denominator: Zero DC-gain denominators fall back to zero state
8. test_filtfilt_short_signal: Signals not longer than 3 * order are rejected
9. test_filtfilt_constant_input: Steady-state initialization removes edge transients
10. test_filtfilt_zi_normalized_by_leading_coefficient: Steady state invariant to scaling of b and a

Figures generated:
- filtfilt_lowpass_noise.png: Raw vs filtfilt vs single-pass filtering of a noisy sinusoid
"""

import numpy as np
import pytest
import torch
import matplotlib.pyplot as plt
from pathlib import Path
from scipy.signal import butter

from torch_sigfilt import ArgumentError, apply_iir_pytorch, filtfilt, filtfilt_zi


def test_filtfilt_arity():
    """filtfilt requires exactly three positional arguments."""
    with pytest.raises(ArgumentError):
        filtfilt()

    with pytest.raises(ArgumentError):
        filtfilt(1, 2, 3, 4)

    with pytest.raises(ArgumentError):
        filtfilt([1.0], [1.0])

    with pytest.raises(ArgumentError):
        filtfilt([1.0], [1.0], x=torch.ones(20))

    # ArgumentError is a TypeError, as Python's own arity errors
    with pytest.raises(TypeError):
        filtfilt([1.0])

    # Three arguments never raise a usage error: pure gain b/a = 0.5, applied twice
    y = filtfilt(1, 2, 3)
    assert y.shape == torch.Size([])
    assert y.item() == pytest.approx(0.75)


def test_filtfilt_lowpass_noise():
    """Butterworth lowpass (order 3, cutoff 0.1) on 200 samples of white noise."""

    TEST_FIGURES_DIR = Path(__file__).parent.parent.parent / 'test_figures'
    TEST_FIGURES_DIR.mkdir(exist_ok=True)

    print("=" * 80)
    print("FILTFILT LOWPASS TEST")
    print("=" * 80)

    rng = np.random.default_rng(0)
    r = torch.from_numpy(rng.standard_normal(200))
    b, a = butter(3, 0.1)

    yfb = filtfilt(b, a, r)
    assert yfb.shape == r.shape
    assert torch.all(torch.isfinite(yfb))
    assert yfb.abs().mean() < 1e3
    assert yfb.abs().mean() < r.abs().mean()

    # Filtering the reversed signal and reversing back
    ybf = torch.flip(filtfilt(b, a, torch.flip(r, dims=[0])), dims=[0])
    assert ybf.abs().mean() < 1e3
    assert ybf.abs().mean() < r.abs().mean()

    # Away from the edges both orders agree
    torch.testing.assert_close(ybf[60:140], yfb[60:140], rtol=0.0, atol=5e-2)

    print(f"  mean|r|   = {r.abs().mean():.4f}")
    print(f"  mean|yfb| = {yfb.abs().mean():.4f}")
    print(f"  mean|ybf| = {ybf.abs().mean():.4f}")
    print(f"  max interior |yfb - ybf| = {(yfb - ybf)[60:140].abs().max():.2e}")

    # ============================================================================
    # PLOTTING: noisy sinusoid, zero-phase vs single-pass
    # ============================================================================
    t = torch.arange(0, 1.0 + 1e-9, 0.01, dtype=torch.float64)
    x = torch.sin(2 * torch.pi * t * 2.3) + 0.25 * torch.from_numpy(rng.standard_normal(len(t)))
    y = filtfilt(b, a, x)
    z = apply_iir_pytorch(x, torch.from_numpy(b), torch.from_numpy(a))

    fig, axes = plt.subplots(2, 1, figsize=(12, 8))
    fig.suptitle('filtfilt - 3rd order Butterworth, cutoff 0.1', fontsize=14, fontweight='bold')

    axes[0].plot(t.numpy(), x.numpy(), 'k-', alpha=0.4, label='data')
    axes[0].plot(t.numpy(), y.numpy(), 'b-', linewidth=2, label='filtfilt')
    axes[0].plot(t.numpy(), z.numpy(), 'r--', linewidth=1.5, label='filter (single pass)')
    axes[0].set_xlabel('Time [s]')
    axes[0].set_ylabel('Amplitude')
    axes[0].legend()
    axes[0].grid(True, alpha=0.3)

    axes[1].plot(r.numpy(), 'k-', alpha=0.4, label='noise')
    axes[1].plot(yfb.numpy(), 'b-', label='filtfilt(r)')
    axes[1].plot(ybf.numpy(), 'g--', label='flip(filtfilt(flip(r)))')
    axes[1].set_xlabel('Sample')
    axes[1].legend()
    axes[1].grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(TEST_FIGURES_DIR / 'filtfilt_lowpass_noise.png', dpi=150, bbox_inches='tight')
    plt.close(fig)

    print(f"\n✓ Figure saved: {TEST_FIGURES_DIR / 'filtfilt_lowpass_noise.png'}")


def test_filtfilt_high_order_bandpass_row():
    """10th-order Butterworth band-pass [0.2, 0.25] on a 1 x 200 row of white noise."""
    rng = np.random.default_rng(3)
    r = rng.standard_normal((1, 200))
    b, a = butter(10, [0.2, 0.25], btype='band')

    inputs = {'tensor': torch.from_numpy(r),
              'row list': r.tolist(),
              'flat list': r[0].tolist()}
    outputs = {}

    for name, x in inputs.items():
        y = filtfilt(b, a, x)
        ybf = torch.flip(filtfilt(b, a, torch.flip(torch.as_tensor(x, dtype=torch.float64), dims=[-1])),
                         dims=[-1])
        print(f"  {name:10s}: dtype={y.dtype}, mean|y|={y.abs().mean():.4f}, mean|r|={np.abs(r).mean():.4f}")

        # Plain sequences are filtered in double precision
        assert y.dtype == torch.float64
        assert y.shape == torch.as_tensor(x).shape
        assert torch.all(torch.isfinite(y))
        assert y.abs().mean() < 1e3
        assert y.abs().mean() < np.abs(r).mean()

        assert ybf.abs().mean() < 1e3
        assert ybf.abs().mean() < np.abs(r).mean()

        outputs[name] = y.reshape(-1)

    torch.testing.assert_close(outputs['row list'], outputs['tensor'])
    torch.testing.assert_close(outputs['flat list'], outputs['tensor'])

    # float32 signals keep double precision coefficients
    y32 = filtfilt(b, a, torch.from_numpy(r).float())
    assert y32.dtype == torch.float64
    assert torch.all(torch.isfinite(y32))


def test_filtfilt_shapes_and_orientation():
    """Output shape and orientation always match the input."""
    rng = np.random.default_rng(1)
    b, a = butter(2, 0.2)
    r = rng.standard_normal(100)

    # 1D
    y_vec = filtfilt(b, a, torch.from_numpy(r))
    assert y_vec.shape == (100,)

    # Row vector stays a row vector
    y_row = filtfilt(b, a, torch.from_numpy(r).reshape(1, -1))
    assert y_row.shape == (1, 100)
    torch.testing.assert_close(y_row[0], y_vec)

    # Column vector stays a column vector
    y_col = filtfilt(b, a, torch.from_numpy(r).reshape(-1, 1))
    assert y_col.shape == (100, 1)
    torch.testing.assert_close(y_col[:, 0], y_vec)

    # Plain Python lists and NumPy arrays are accepted
    y_list = filtfilt(list(b), list(a), r.tolist())
    assert y_list.shape == (100,)
    y_np = filtfilt(b, a, r)
    torch.testing.assert_close(y_np, y_vec)

    # Matrices of independent columns
    y_mat = filtfilt(b, a, torch.from_numpy(rng.standard_normal((100, 3))))
    assert y_mat.shape == (100, 3)

    with pytest.raises(ValueError):
        filtfilt(b, a, torch.zeros(2, 3, 100, dtype=torch.float64))


def test_filtfilt_column_independence():
    """Filtering [r s] column-wise equals filtering r and s separately."""
    rng = np.random.default_rng(0)
    r = torch.from_numpy(rng.standard_normal(1000))
    s = 10 * torch.sin(torch.pi * 4e-2 * torch.arange(1, 1001, dtype=torch.float64))
    b, a = butter(2, [4e-4, 8e-2], btype='band')

    y = filtfilt(b, a, torch.stack([r, s], dim=1))
    yr = filtfilt(b, a, r)
    ys = filtfilt(b, a, s)

    torch.testing.assert_close(y, torch.stack([yr, ys], dim=1))


def test_filtfilt_coefficient_orientation():
    """Row and column coefficient vectors give identical results."""
    rng = np.random.default_rng(0)
    x = torch.from_numpy(rng.standard_normal((1000, 2)))
    b, a = butter(2, [4e-4, 8e-2], btype='band')

    y = filtfilt(b, a, x)
    y_col = filtfilt(b.reshape(-1, 1), a.reshape(-1, 1), x)
    y_row = filtfilt(b.reshape(1, -1), a.reshape(1, -1), x)

    assert torch.equal(y, y_col)
    assert torch.equal(y, y_row)

    with pytest.raises(ValueError):
        filtfilt(np.ones((2, 2)), a, x)

    with pytest.raises(ValueError):
        filtfilt([], a, x)


def test_filtfilt_degenerate_denominator():
    """Non-finite DC gain falls back to a zero initial state without raising."""
    x = torch.linspace(-1.0, 1.0, 50, dtype=torch.float64)

    # sum(a) == 0 with a[0] == 0: no numeric exception, only a warning
    with pytest.warns(UserWarning):
        y = filtfilt([1.0], [0.0], x)
    assert y.shape == x.shape

    zi_zero = filtfilt_zi([1.0, 1.0], [0.0, 0.0])
    assert torch.equal(zi_zero, torch.zeros(1, dtype=zi_zero.dtype))

    # Integrator: sum(a) == 0 but a[0] != 0, the filter still runs
    zi = filtfilt_zi([1.0, 0.0], [1.0, -1.0])
    assert torch.equal(zi, torch.zeros(1, dtype=zi.dtype))
    y_int = filtfilt([1.0, 0.0], [1.0, -1.0], x)
    assert torch.all(torch.isfinite(y_int))

    # Zeroth-order filter has an empty state
    assert filtfilt_zi([2.0], [1.0]).numel() == 0


def test_filtfilt_short_signal():
    """Signals must be longer than the reflection length 3 * (n - 1)."""
    b, a = butter(3, 0.1)  # n = 4, lrefl = 9

    with pytest.raises(ValueError):
        filtfilt(b, a, torch.randn(9, dtype=torch.float64))

    y = filtfilt(b, a, torch.randn(10, dtype=torch.float64))
    assert y.shape == (10,)


def test_filtfilt_constant_input():
    """A constant signal passes a lowpass unchanged, including at the edges."""
    b, a = butter(4, 0.05)
    x = torch.full((300,), 3.5, dtype=torch.float64)

    y = filtfilt(b, a, x)
    torch.testing.assert_close(y, x, rtol=0.0, atol=1e-9)

    # A highpass removes it entirely
    b_hp, a_hp = butter(4, 0.05, btype='high')
    y_hp = filtfilt(b_hp, a_hp, x)
    torch.testing.assert_close(y_hp, torch.zeros_like(x), rtol=0.0, atol=1e-9)


def test_filtfilt_zi_normalized_by_leading_coefficient():
    """The steady state is divided by a[0], so a common scaling of b and a has no effect."""
    b, a = butter(2, 0.3)
    b, a = torch.from_numpy(b), torch.from_numpy(a)

    zi = filtfilt_zi(b, a)
    zi_scaled = filtfilt_zi(2 * b, 2 * a)
    torch.testing.assert_close(zi_scaled, zi)

    # Reversed cumulative sum of b - kdc * a, divided by a[0], first element dropped
    kdc = b.sum() / a.sum()
    cumsum = torch.flip(torch.cumsum(torch.flip(2 * b - kdc * 2 * a, dims=[0]), dim=0), dims=[0])
    torch.testing.assert_close(zi_scaled, cumsum[1:] / 2.0)

    # A constant input passes without transients for either scaling
    x = torch.full((100,), -1.25, dtype=torch.float64)
    torch.testing.assert_close(filtfilt(2 * b, 2 * a, x), x, rtol=0.0, atol=1e-12)
