# conftest.py
"""
Shared fixtures: an in-memory 1-D refinement forest standing in for the mesh,
and simple error estimators.
"""

from collections.abc import Callable, Sequence

import numpy as np
import pytest

from meshcontrol.refinement import Refinement


Leaf = tuple[int, int, int]  # (root, level, position within root at that level)


class LineForestMesh:
    """
    Unit-length root intervals, each refinable into a binary tree of leaves.

    Leaves are kept in spatial order, so element i and i + 1 are neighbors.
    Every mutation bumps the sequence counter.
    """

    def __init__(
        self,
        num_roots: int = 4,
        nonconforming: bool = True,
        distributed: bool = False,
        comm=None,
    ) -> None:
        self.leaves: list[Leaf] = [(r, 0, 0) for r in range(num_roots)]
        self._sequence = 0
        self.is_nonconforming = nonconforming
        self.is_distributed = distributed
        self.comm = comm
        self.refinement_calls: list[tuple[tuple[Refinement, ...], int, int]] = []
        self.derefine_calls: list[tuple[np.ndarray, float, int]] = []
        self.rebalance_count = 0

    # --- protocol ---------------------------------------------------------

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def num_elements(self) -> int:
        return len(self.leaves)

    def general_refinement(
        self, refinements: Sequence[Refinement], nonconforming: int = -1, nc_limit: int = 0
    ) -> None:
        refinements = tuple(refinements)
        self.refinement_calls.append((refinements, nonconforming, nc_limit))
        if not refinements:
            return
        marked = {ref.index for ref in refinements}
        new_leaves: list[Leaf] = []
        for i, (root, level, pos) in enumerate(self.leaves):
            if i in marked:
                new_leaves.append((root, level + 1, 2 * pos))
                new_leaves.append((root, level + 1, 2 * pos + 1))
            else:
                new_leaves.append((root, level, pos))
        self.leaves = new_leaves
        self._sequence += 1

    def derefinement_table(self) -> list[list[int]]:
        table = []
        i = 0
        while i < len(self.leaves) - 1:
            root, level, pos = self.leaves[i]
            if level > 0 and pos % 2 == 0 and self.leaves[i + 1] == (root, level, pos + 1):
                table.append([i, i + 1])
                i += 2
            else:
                i += 1
        return table

    def derefine_by_error(self, group_errors, threshold: float, nc_limit: int = 0) -> bool:
        group_errors = np.asarray(group_errors, dtype=np.float64)
        self.derefine_calls.append((group_errors.copy(), threshold, nc_limit))
        table = self.derefinement_table()
        merge_at: dict[int, Leaf] = {}
        for group, error in zip(table, group_errors):
            if error > threshold:
                continue
            first = group[0]
            root, level, pos = self.leaves[first]
            parent_level = level - 1
            if nc_limit > 0:
                neighbors = [j for j in (first - 1, first + 2) if 0 <= j < len(self.leaves)]
                if any(self.leaves[j][1] - parent_level > nc_limit for j in neighbors):
                    continue
            merge_at[first] = (root, parent_level, pos // 2)

        if not merge_at:
            return False

        new_leaves: list[Leaf] = []
        i = 0
        while i < len(self.leaves):
            if i in merge_at:
                new_leaves.append(merge_at[i])
                i += 2
            else:
                new_leaves.append(self.leaves[i])
                i += 1
        self.leaves = new_leaves
        self._sequence += 1
        return True

    def nc_level_violations(self, nc_limit: int) -> list[Refinement]:
        coarse = set()
        for i in range(len(self.leaves) - 1):
            left, right = self.leaves[i][1], self.leaves[i + 1][1]
            if right - left > nc_limit:
                coarse.add(i)
            elif left - right > nc_limit:
                coarse.add(i + 1)
        return [Refinement(i) for i in sorted(coarse)]

    def rebalance(self) -> None:
        self.rebalance_count += 1
        self._sequence += 1

    # --- test helpers -----------------------------------------------------

    def levels(self) -> list[int]:
        return [level for _, level, _ in self.leaves]

    def centers(self) -> np.ndarray:
        return np.array([root + (pos + 0.5) / 2**level for root, level, pos in self.leaves])

    def sizes(self) -> np.ndarray:
        return np.array([1.0 / 2**level for _, level, _ in self.leaves])

    def rollback(self, steps: int = 1) -> None:
        self._sequence -= steps


class ArrayEstimator:
    """Returns whatever error vector the test assigned."""

    def __init__(self, errors) -> None:
        self.errors = np.asarray(errors, dtype=np.float64)
        self.calls = 0

    def get_local_errors(self) -> np.ndarray:
        self.calls += 1
        return self.errors


class AnisotropicArrayEstimator(ArrayEstimator):
    def __init__(self, errors, flags) -> None:
        super().__init__(errors)
        self.flags = list(flags)

    def get_anisotropic_flags(self) -> list[int]:
        return self.flags


class LeafFunctionEstimator:
    """Error of each leaf computed from its center and size."""

    def __init__(self, mesh: LineForestMesh, fn: Callable[[float, float], float]) -> None:
        self.mesh = mesh
        self.fn = fn

    def get_local_errors(self) -> np.ndarray:
        return np.array(
            [self.fn(c, h) for c, h in zip(self.mesh.centers(), self.mesh.sizes())],
            dtype=np.float64,
        )


class ScriptedTwoWorkerComm:
    """
    Communicator of a two-worker run where the peer's contributions are scripted.

    Each allreduce consumes the next peer value and combines it with the local
    value using the requested MPI operation.
    """

    def __init__(self, peer_values: Sequence) -> None:
        self.peer_values = list(peer_values)
        self.calls: list[tuple] = []

    def Get_size(self) -> int:
        return 2

    def allreduce(self, sendobj, op=None):
        from mpi4py import MPI

        peer = self.peer_values.pop(0)
        self.calls.append((sendobj, peer, op))
        if op == MPI.SUM:
            return sendobj + peer
        if op == MPI.MAX:
            return max(sendobj, peer)
        if op == MPI.MIN:
            return min(sendobj, peer)
        raise AssertionError(f"unexpected op {op}")


@pytest.fixture
def line_mesh() -> LineForestMesh:
    """Four unrefined, nonconforming, serial elements."""
    return LineForestMesh(4)


@pytest.fixture
def mesh_factory() -> type[LineForestMesh]:
    return LineForestMesh


@pytest.fixture
def array_estimator() -> type[ArrayEstimator]:
    return ArrayEstimator


@pytest.fixture
def aniso_estimator() -> type[AnisotropicArrayEstimator]:
    return AnisotropicArrayEstimator


@pytest.fixture
def function_estimator() -> type[LeafFunctionEstimator]:
    return LeafFunctionEstimator


@pytest.fixture
def two_worker_comm() -> type[ScriptedTwoWorkerComm]:
    return ScriptedTwoWorkerComm
