"""Path-loss models: FSPL, log-distance, terrain-integrated log-distance."""

from __future__ import annotations

import numpy as np


def free_space_path_loss(distance_m: np.ndarray | float, freq_mhz: float) -> np.ndarray:
    """Free-Space Path Loss (Friis).

    FSPL(dB) = 20·log10(d) + 20·log10(f) + 32.44
    where *d* in km, *f* in MHz.
    """
    d_km = np.asarray(distance_m, dtype=np.float64) / 1000.0
    d_km = np.clip(d_km, 1e-6, None)
    return 20.0 * np.log10(d_km) + 20.0 * np.log10(freq_mhz) + 32.44  # type: ignore[return-value]


def log_distance_path_loss(
    distance_m: np.ndarray | float,
    freq_mhz: float,
    n: float = 2.7,
    d0: float = 1.0,
) -> np.ndarray:
    """Log-distance path-loss model.

    PL(d) = PL(d0) + 10·n·log10(d/d0)

    PL(d0) is computed via FSPL at reference distance *d0*.
    """
    pl0 = float(free_space_path_loss(d0, freq_mhz))
    d = np.asarray(distance_m, dtype=np.float64)
    d = np.clip(d, d0, None)
    return pl0 + 10.0 * n * np.log10(d / d0)  # type: ignore[return-value]


def terrain_path_loss(
    exponents: np.ndarray,
    distance_m: float,
    freq_mhz: float,
    d0: float = 1.0,
) -> float:
    """Log-distance path loss integrated over heterogeneous terrain.

    The path from *d0* to *distance_m* is split into ``len(exponents)``
    equal segments; segment *k* contributes ``10·n_k·log10(d_k / d_{k-1})``.
    Over uniform terrain this telescopes to :func:`log_distance_path_loss`.

    Parameters
    ----------
    exponents : np.ndarray
        Path-loss exponent of every terrain sample along the path, sender first.
    distance_m : float
        Straight-line distance between sender and receiver (m).
    """
    pl0 = float(free_space_path_loss(d0, freq_mhz))
    n = np.asarray(exponents, dtype=np.float64)
    if distance_m <= d0 or n.size == 0:
        return pl0
    edges = np.linspace(d0, distance_m, n.size + 1)
    return pl0 + float(np.sum(10.0 * n * np.log10(edges[1:] / edges[:-1])))
