"""Matplotlib views of estimator output."""

from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt


def plot_orientation(
    results: pd.DataFrame,
    truth: Optional[pd.DataFrame] = None,
    save_path: Optional[Union[str, Path]] = None,
    show: bool = False,
):
    """
    Plot roll/pitch/yaw estimates (and the angle-axis angle) over time.

    Args:
        results: Output of ``replay_log`` (time, roll, pitch, yaw, angle columns).
        truth: Optional DataFrame with time, roll, pitch, yaw truth columns.
        save_path: If given, the figure is written there.
        show: Call ``plt.show()`` at the end.

    Returns:
        The matplotlib Figure.
    """
    time = results["time"].values
    fig, axes = plt.subplots(2, 2, figsize=(14, 10), sharex=True)
    fig.suptitle("EKF Orientation Estimate", fontsize=16, fontweight="bold")

    for ax, name in zip(axes.flat[:3], ("roll", "pitch", "yaw")):
        if truth is not None:
            ax.plot(truth["time"].values, np.degrees(truth[name].values), "g--",
                    label=f"True {name.title()}", alpha=0.7, linewidth=1.2)
        ax.plot(time, np.degrees(results[name].values), "r-", label="EKF Estimate", linewidth=2.0)
        ax.set_ylabel(f"{name.title()} (degrees)", fontsize=10)
        ax.legend(fontsize=9)
        ax.grid(True, alpha=0.3)

    ax4 = axes.flat[3]
    ax4.plot(time, np.degrees(results["angle"].values), "b-", label="Rotation angle", linewidth=1.5)
    ax4.set_ylabel("Angle (degrees)", fontsize=10)
    ax4.legend(fontsize=9)
    ax4.grid(True, alpha=0.3)

    for ax in axes[1]:
        ax.set_xlabel("Time (s)", fontsize=10)

    plt.tight_layout(rect=[0, 0.02, 1, 0.96])

    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    return fig
