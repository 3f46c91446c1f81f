from __future__ import annotations

import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from .loop import AdaptationHistory


logger = logging.getLogger(__name__)


def print_adaptation_summary(history: AdaptationHistory) -> None:
    """
    Present the recorded adaptation decisions without interpretation.

    Args:
        history: History collected by run_adaptive_loop or apply_control
    """
    print("\n" + "=" * 60)
    print("MESHCONTROL ADAPTATION DATA")
    print("=" * 60)

    if not history.records:
        print("│  No updates recorded")
        print("=" * 60 + "\n")
        return

    _print_counts_section(history)
    _print_mesh_section(history)

    print("=" * 60)
    print("END ADAPTATION DATA")
    print("=" * 60 + "\n")


def _print_counts_section(history: AdaptationHistory) -> None:
    print("\n┌─ DECISIONS")
    print("│")
    print(f"│  Updates: {len(history)}")
    print(f"│  Iterations: {history.records[-1].iteration + 1}")
    print(f"│  Refinements: {history.num_refinements}")
    print(f"│  De-refinements: {history.num_derefinements}")
    print(f"│  Rebalances: {history.num_rebalances}")
    print(f"│  Final action: {history.final_action}")
    print(f"│  Stopped: {history.stopped}")


def _print_mesh_section(history: AdaptationHistory) -> None:
    first = history.records[0]
    last = history.records[-1]
    print("\n┌─ MESH")
    print("│")
    print(f"│  Elements: {first.num_elements} -> {last.num_elements}")
    print(f"│  Sequence: {first.sequence} -> {last.sequence}")
