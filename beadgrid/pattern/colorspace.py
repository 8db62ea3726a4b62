# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Color space conversions and perceptual distance.

Conversion chain: sRGB → Linear RGB → CIE XYZ (D65) → CIELAB

References:
- sRGB: IEC 61966-2-1
- CIEDE2000: Sharma, Wu & Dalal, "The CIEDE2000 Color-Difference Formula"

All conversions are pure NumPy and operate on arrays of shape (..., 3).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from beadgrid.schema import Color


# =============================================================================
# sRGB ↔ Linear RGB
# =============================================================================


def srgb_to_linear(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB values [0,1] to linear RGB.

    sRGB uses a piecewise gamma curve:
    - For values <= 0.04045: linear/12.92
    - For values > 0.04045: ((value + 0.055) / 1.055) ^ 2.4
    """
    srgb = np.asarray(srgb, dtype=np.float64)
    return np.where(
        srgb <= 0.04045,
        srgb / 12.92,
        np.power((srgb + 0.055) / 1.055, 2.4)
    )


# =============================================================================
# Linear RGB → XYZ → CIELAB
# =============================================================================

# Linear sRGB to XYZ, D65
_RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
], dtype=np.float64)

# D65 reference white, the image of RGB (1, 1, 1) so grays map to a* = b* = 0
_WHITE_D65 = _RGB_TO_XYZ.sum(axis=1)

_LAB_EPSILON = 0.008856
_LAB_KAPPA = 7.787


def linear_rgb_to_xyz(rgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert linear RGB (..., 3) to XYZ (..., 3)."""
    rgb = np.asarray(rgb, dtype=np.float64)
    return np.einsum('...j,ij->...i', rgb, _RGB_TO_XYZ)


def xyz_to_lab(xyz: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert XYZ to CIELAB relative to the D65 white point.

    Returns:
        Array of shape (..., 3) with (L*, a*, b*). L* is in [0, 100].
    """
    xyz = np.asarray(xyz, dtype=np.float64) / _WHITE_D65
    f = np.where(
        xyz > _LAB_EPSILON,
        np.cbrt(xyz),
        _LAB_KAPPA * xyz + 16.0 / 116.0,
    )
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]
    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b = 200.0 * (fy - fz)
    return np.stack([L, a, b], axis=-1)


def srgb_to_lab(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB [0,1] to CIELAB.

    Full chain: sRGB → Linear RGB → XYZ → CIELAB
    """
    return xyz_to_lab(linear_rgb_to_xyz(srgb_to_linear(srgb)))


def srgb_uint8_to_lab(pixels: NDArray[np.uint8]) -> NDArray[np.float64]:
    """
    Convert uint8 sRGB pixels [0,255] to CIELAB.

    Args:
        pixels: Array of shape (..., 3) with sRGB values [0, 255]

    Returns:
        Array of shape (..., 3) with (L*, a*, b*)
    """
    srgb_float = np.asarray(pixels).astype(np.float64) / 255.0
    return srgb_to_lab(srgb_float)


# =============================================================================
# CIEDE2000
# =============================================================================

_POW25_7 = 25.0 ** 7


def delta_e_2000(
    lab1: NDArray[np.float64],
    lab2: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    CIEDE2000 color difference, element-wise over broadcastable arrays.

    Implements the full formula: a' rescaling by the G factor, hue
    rotation term R_T, and the S_L/S_C/S_H compensation functions.
    Weighting factors kL = kC = kH = 1.

    Reference thresholds (CIELAB scale, 0-100):
    - ΔE < 1: not perceptible
    - ΔE 2-10: perceptible at a glance
    - ΔE > 50: opposite colors

    Args:
        lab1: Array of shape (..., 3) with CIELAB values
        lab2: Array of shape (..., 3) broadcastable against lab1

    Returns:
        Array of ΔE values with the broadcast shape minus the last axis
    """
    lab1 = np.asarray(lab1, dtype=np.float64)
    lab2 = np.asarray(lab2, dtype=np.float64)

    L1, a1, b1 = lab1[..., 0], lab1[..., 1], lab1[..., 2]
    L2, a2, b2 = lab2[..., 0], lab2[..., 1], lab2[..., 2]

    C1 = np.hypot(a1, b1)
    C2 = np.hypot(a2, b2)
    C_bar7 = ((C1 + C2) / 2.0) ** 7
    G = 0.5 * (1.0 - np.sqrt(C_bar7 / (C_bar7 + _POW25_7)))

    a1p = a1 * (1.0 + G)
    a2p = a2 * (1.0 + G)
    C1p = np.hypot(a1p, b1)
    C2p = np.hypot(a2p, b2)

    # Hue angles in [0, 360); zero chroma has no defined hue
    h1p = np.degrees(np.arctan2(b1, a1p)) % 360.0
    h2p = np.degrees(np.arctan2(b2, a2p)) % 360.0
    chroma_product = C1p * C2p
    achromatic = chroma_product == 0

    dLp = L2 - L1
    dCp = C2p - C1p

    dhp = h2p - h1p
    dhp = np.where(dhp > 180.0, dhp - 360.0, dhp)
    dhp = np.where(dhp < -180.0, dhp + 360.0, dhp)
    dhp = np.where(achromatic, 0.0, dhp)
    dHp = 2.0 * np.sqrt(chroma_product) * np.sin(np.radians(dhp) / 2.0)

    Lp_bar = (L1 + L2) / 2.0
    Cp_bar = (C1p + C2p) / 2.0

    h_sum = h1p + h2p
    h_diff = np.abs(h1p - h2p)
    hp_bar = np.where(
        h_diff <= 180.0,
        h_sum / 2.0,
        np.where(h_sum < 360.0, (h_sum + 360.0) / 2.0, (h_sum - 360.0) / 2.0),
    )
    hp_bar = np.where(achromatic, h_sum, hp_bar)

    T = (
        1.0
        - 0.17 * np.cos(np.radians(hp_bar - 30.0))
        + 0.24 * np.cos(np.radians(2.0 * hp_bar))
        + 0.32 * np.cos(np.radians(3.0 * hp_bar + 6.0))
        - 0.20 * np.cos(np.radians(4.0 * hp_bar - 63.0))
    )

    d_theta = 30.0 * np.exp(-(((hp_bar - 275.0) / 25.0) ** 2))
    Cp_bar7 = Cp_bar ** 7
    R_C = 2.0 * np.sqrt(Cp_bar7 / (Cp_bar7 + _POW25_7))
    L_term = (Lp_bar - 50.0) ** 2
    S_L = 1.0 + (0.015 * L_term) / np.sqrt(20.0 + L_term)
    S_C = 1.0 + 0.045 * Cp_bar
    S_H = 1.0 + 0.015 * Cp_bar * T
    R_T = -np.sin(np.radians(2.0 * d_theta)) * R_C

    l_part = dLp / S_L
    c_part = dCp / S_C
    h_part = dHp / S_H

    return np.sqrt(
        l_part ** 2 + c_part ** 2 + h_part ** 2 + R_T * c_part * h_part
    )


def delta_e_2000_matrix(
    lab_a: NDArray[np.float64],
    lab_b: NDArray[np.float64],
    chunk_size: int = 4096,
) -> NDArray[np.float64]:
    """
    Pairwise CIEDE2000 between two color sets.

    Rows are processed in chunks so memory stays bounded at
    chunk_size * K intermediate values.

    Args:
        lab_a: (N, 3) CIELAB array
        lab_b: (K, 3) CIELAB array
        chunk_size: Rows of lab_a processed per step

    Returns:
        (N, K) array where [i, j] = ΔE(lab_a[i], lab_b[j])
    """
    lab_a = np.asarray(lab_a, dtype=np.float64).reshape(-1, 3)
    lab_b = np.asarray(lab_b, dtype=np.float64).reshape(-1, 3)

    out = np.empty((len(lab_a), len(lab_b)), dtype=np.float64)
    for start in range(0, len(lab_a), chunk_size):
        block = lab_a[start:start + chunk_size]
        out[start:start + len(block)] = delta_e_2000(
            block[:, np.newaxis, :], lab_b[np.newaxis, :, :]
        )
    return out


# =============================================================================
# Color-level API
# =============================================================================


def distance(a: Color, b: Color) -> float:
    """
    Calibrated perceptual distance (CIEDE2000) between two colors.

    Use this whenever the absolute value matters (matching, statistics).
    """
    return float(delta_e_2000(np.array(a.lab), np.array(b.lab)))


def euclidean_distance(a: Color, b: Color) -> float:
    """
    Uncalibrated Euclidean distance in raw RGB space.

    Cheaper than distance(); only relative ranking is meaningful.
    """
    return float(np.sqrt(
        (a.r - b.r) ** 2 + (a.g - b.g) ** 2 + (a.b - b.b) ** 2
    ))
