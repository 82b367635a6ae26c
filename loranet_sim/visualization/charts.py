"""Matplotlib charts of one mote's run: received signal, power setting, energy."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from ..core.device import Mote
from ..core.environment import Environment


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------

def _signal_series(env: Environment, mote: Mote, run: int) -> Dict[str, Tuple[List[int], List[float], List[bool]]]:
    """Per gateway: transmission index, received signal and collision flag."""
    sent_index = {t.transmission_id: i for i, t in enumerate(mote.sent_transmissions(run))}
    series: Dict[str, Tuple[List[int], List[float], List[bool]]] = {}
    for gw in env.gateways:
        xs: List[int] = []
        ys: List[float] = []
        lost: List[bool] = []
        for reception in gw.receptions(run):
            idx = sent_index.get(reception.transmission.transmission_id)
            if idx is None:
                continue
            xs.append(idx)
            ys.append(reception.rssi_dbm)
            lost.append(reception.collided)
        series[f"GW {gw.eui}"] = (xs, ys, lost)
    return series


def _finish(fig: plt.Figure, ax: plt.Axes, title: str, save_path: Optional[str | Path]) -> plt.Figure:  # type: ignore[name-defined]
    ax.set_title(title)
    ax.grid(True, alpha=0.3, linestyle="--")
    fig.tight_layout()
    if save_path:
        fig.savefig(str(save_path), dpi=150)
    return fig


# ------------------------------------------------------------------
# Public plots
# ------------------------------------------------------------------

def plot_received_signal(
    env: Environment,
    mote: Mote,
    run: Optional[int] = None,
    save_path: Optional[str | Path] = None,
    figsize: tuple[int, int] = (10, 5),
) -> plt.Figure:  # type: ignore[name-defined]
    """Scatter of the signal each gateway received per transmission; collided packets as crosses."""
    run = env.current_run if run is None else run
    fig, ax = plt.subplots(figsize=figsize)
    for label, (xs, ys, lost) in _signal_series(env, mote, run).items():
        if not xs:
            continue
        x = np.asarray(xs)
        y = np.asarray(ys)
        mask = np.asarray(lost, dtype=bool)
        points = ax.scatter(x[~mask], y[~mask], s=12, label=label)
        if mask.any():
            ax.scatter(x[mask], y[mask], s=24, marker="x", color=points.get_facecolor()[0])
    ax.set_xlabel("Transmission #")
    ax.set_ylabel("Received signal strength (dBm)")
    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc="upper right", fontsize=8)
    return _finish(fig, ax, f"Mote {mote.eui}: received signal (run {run})", save_path)


def plot_transmission_power(
    mote: Mote,
    run: Optional[int] = None,
    save_path: Optional[str | Path] = None,
    figsize: tuple[int, int] = (10, 4),
) -> plt.Figure:  # type: ignore[name-defined]
    """Power setting of every transmission, showing the adaptation over time."""
    run = mote.current_run if run is None else run
    powers = [t.transmission_power for t in mote.sent_transmissions(run)]
    fig, ax = plt.subplots(figsize=figsize)
    ax.step(np.arange(len(powers)), powers, where="post", color="tab:orange")
    ax.set_xlabel("Transmission #")
    ax.set_ylabel("Transmission power (dBm)")
    return _finish(fig, ax, f"Mote {mote.eui}: transmission power (run {run})", save_path)


def plot_energy_usage(
    mote: Mote,
    run: Optional[int] = None,
    save_path: Optional[str | Path] = None,
    figsize: tuple[int, int] = (10, 4),
) -> plt.Figure:  # type: ignore[name-defined]
    """Energy per transmission (bars) and cumulative energy (line)."""
    run = mote.current_run if run is None else run
    used = np.asarray(mote.used_energy(run), dtype=np.float64)
    idx = np.arange(used.size)
    fig, ax = plt.subplots(figsize=figsize)
    ax.bar(idx, used, color="tab:blue", alpha=0.6, label="per transmission")
    ax.set_xlabel("Transmission #")
    ax.set_ylabel("Energy (J)")
    ax2 = ax.twinx()
    ax2.plot(idx, np.cumsum(used), color="tab:red", label="cumulative")
    ax2.set_ylabel("Cumulative energy (J)")
    return _finish(fig, ax, f"Mote {mote.eui}: energy usage (run {run})", save_path)
