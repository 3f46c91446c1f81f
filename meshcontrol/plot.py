"""
Plotting of adaptation histories.
"""

import logging
from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure as MplFigure

from .action_info import Info


if TYPE_CHECKING:
    from .loop import AdaptationHistory


logger = logging.getLogger(__name__)

_INFO_STYLES = {
    Info.REFINE: ("^", "tab:red", "refine"),
    Info.DEREFINE: ("v", "tab:blue", "de-refine"),
    Info.REBALANCE: ("s", "tab:green", "rebalance"),
}


def plot_adaptation_history(
    history: "AdaptationHistory",
    figsize: tuple[float, float] = (10.0, 5.0),
    log_scale: bool = False,
) -> MplFigure | None:
    """
    Plot the element count after every update, marking what each update did.

    Args:
        history: History collected by run_adaptive_loop or apply_control
        figsize: Figure size
        log_scale: Use a logarithmic element-count axis

    Returns:
        The matplotlib figure, or None for an empty history
    """
    if not history.records:
        logger.warning("Cannot plot: adaptation history is empty")
        return None

    columns = history.as_arrays()
    updates = np.arange(len(history))
    num_elements = columns["num_elements"]

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(updates, num_elements, color="0.5", linewidth=1.0)

    for info, (marker, color, label) in _INFO_STYLES.items():
        mask = np.array([r.action_info.info == info for r in history.records], dtype=bool)
        if np.any(mask):
            ax.scatter(updates[mask], num_elements[mask], marker=marker, color=color, label=label)

    if history.stopped:
        ax.axvline(updates[-1], color="k", linestyle="--", alpha=0.5, label="stop")

    if log_scale:
        ax.set_yscale("log")
    ax.set_xlabel("Update")
    ax.set_ylabel("Elements")
    ax.set_title("Mesh adaptation history")
    ax.grid(True, alpha=0.3)
    if ax.get_legend_handles_labels()[0]:
        ax.legend()
    fig.tight_layout()
    return fig
