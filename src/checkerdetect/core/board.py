from __future__ import annotations

import math

import numpy as np


UP, DOWN, LEFT, RIGHT = 0, 1, 2, 3
DIRECTIONS = (UP, DOWN, LEFT, RIGHT)

# A perfect 3x3 start board scores -9.
MAX_INITIAL_ENERGY = -7.0


def _triple_residuals(p0: np.ndarray, p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    """
    |p0 + p2 - 2 p1| / |p0 - p2| for stacks of (...,2) points.

    Zero for three equally spaced collinear points. Coincident end points give inf
    instead of NaN so that the board compares as invalid.
    """
    num = p0 + p2 - 2.0 * p1
    den = p0 - p2
    num_n = np.hypot(num[..., 0], num[..., 1])
    den_n = np.hypot(den[..., 0], den[..., 1])
    with np.errstate(divide="ignore", invalid="ignore"):
        r = num_n / den_n
    return np.where(den_n > 0.0, r, np.inf)


def _max_or_zero(r: np.ndarray) -> float:
    return float(np.max(r)) if r.size else 0.0


class Checkerboard:
    """
    Partially grown grid of checkerboard corners.

    `board_idx` holds 0-based indices into `points` (-1 marks a cell that could not
    be filled), `board_coords` the matching (x, y) coordinates. The board is owned
    by a single growth attempt and mutated in place.
    """

    def __init__(self, max_initial_energy: float = MAX_INITIAL_ENERGY) -> None:
        self.max_initial_energy = float(max_initial_energy)
        self.points = np.zeros((0, 2), dtype=np.float64)
        self.board_idx = np.full((3, 3), -1, dtype=np.int64)
        self.board_coords = np.zeros((3, 3, 2), dtype=np.float64)
        self.energy = math.inf
        self.is_valid = False
        self.direction_blocked = [False, False, False, False]
        self.last_expand_direction = UP
        self.previous_energy = math.inf
        self._max_residual = math.inf
        self._previous_max_residual = math.inf

    @property
    def shape(self) -> tuple[int, int]:
        return int(self.board_idx.shape[0]), int(self.board_idx.shape[1])

    @property
    def num_cells(self) -> int:
        return int(self.board_idx.size)

    # ------------------------------------------------------------------
    def initialize(self, seed_idx: int, points: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> bool:
        """
        Build the 3x3 start board around `points[seed_idx]`.

        `v1` points towards the right neighbour and `v2` towards the lower one.
        Returns `is_valid`.
        """
        self.points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        self.board_idx = np.full((3, 3), -1, dtype=np.int64)
        self.board_coords = np.zeros((3, 3, 2), dtype=np.float64)
        self.direction_blocked = [False, False, False, False]
        self.last_expand_direction = UP
        self.previous_energy = math.inf
        self.energy = math.inf
        self._max_residual = math.inf
        self.is_valid = False

        seed_idx = int(seed_idx)
        if not 0 <= seed_idx < self.points.shape[0]:
            raise IndexError(f"seed index {seed_idx} out of range for {self.points.shape[0]} points")

        center = self.points[seed_idx]
        self.board_idx[1, 1] = seed_idx
        self.board_coords[1, 1] = center

        point_vectors = self.points - center
        euclidean_dists = np.hypot(point_vectors[:, 0], point_vectors[:, 1])

        v1 = np.asarray(v1, dtype=np.float64).reshape(2)
        v2 = np.asarray(v2, dtype=np.float64).reshape(2)
        for (r, c), v in (((1, 2), v1), ((1, 0), -v1), ((2, 1), v2), ((0, 1), -v2)):
            if not self._place_neighbor(r, c, point_vectors, euclidean_dists, v):
                return False

        up = self.board_coords[0, 1] - center
        down = self.board_coords[2, 1] - center
        left = self.board_coords[1, 0] - center
        right = self.board_coords[1, 2] - center
        for (r, c), v in (((0, 0), up + left), ((2, 0), down + left), ((2, 2), down + right), ((0, 2), up + right)):
            if not self._place_neighbor(r, c, point_vectors, euclidean_dists, v):
                return False

        self.energy = self.compute_energy()
        self.is_valid = self.energy < self.max_initial_energy
        return self.is_valid

    def _place_neighbor(
        self,
        r: int,
        c: int,
        point_vectors: np.ndarray,
        euclidean_dists: np.ndarray,
        v: np.ndarray,
    ) -> bool:
        idx = self._find_neighbor(point_vectors, euclidean_dists, v)
        if idx < 0:
            return False
        self.board_idx[r, c] = idx
        self.board_coords[r, c] = self.points[idx]
        return True

    def _find_neighbor(self, point_vectors: np.ndarray, euclidean_dists: np.ndarray, v: np.ndarray) -> int:
        """Nearest unused point in the direction of `v`, or -1."""
        v_norm = math.hypot(float(v[0]), float(v[1]))
        with np.errstate(divide="ignore", invalid="ignore"):
            angle_cosines = (point_vectors @ v) / (euclidean_dists * v_norm)

        # Euclidean distance plus a penalty for leaving the direction of v.
        dists = euclidean_dists + 1.5 * euclidean_dists * (1.0 - angle_cosines)

        dists[self.board_idx[self.board_idx >= 0]] = np.inf
        # Behind the center, or undefined angle (coincident point / zero direction).
        dists[~(angle_cosines >= 0.0)] = np.inf

        if dists.size == 0:
            return -1
        idx = int(np.argmin(dists))
        if not np.isfinite(dists[idx]):
            return -1
        return idx

    # ------------------------------------------------------------------
    def compute_energy(self) -> float:
        """Energy of the whole board computed from scratch."""
        e = self._full_max_residual()
        self._max_residual = e
        return self._energy_from_residual(e)

    def _full_max_residual(self) -> float:
        if np.any(self.board_idx < 0):
            return math.inf
        coords = self.board_coords
        e = 0.0
        if coords.shape[1] >= 3:
            e = max(e, _max_or_zero(_triple_residuals(coords[:, :-2], coords[:, 1:-1], coords[:, 2:])))
        if coords.shape[0] >= 3:
            e = max(e, _max_or_zero(_triple_residuals(coords[:-2], coords[1:-1], coords[2:])))
        return e

    def _energy_from_residual(self, e: float) -> float:
        if not math.isfinite(e):
            return math.inf
        n = float(self.num_cells)
        return e * n - n

    # ------------------------------------------------------------------
    def expand_fully(self) -> Checkerboard:
        """Grow the board until no direction lowers the energy."""
        if not self.is_valid:
            return self
        while self.expand_once():
            pass
        return self

    def expand_once(self) -> bool:
        """
        Try one row/column expansion in the first direction (up, down, left, right)
        that strictly lowers the energy. Failed attempts are rolled back and their
        direction blocked until the next successful expansion.
        """
        self.previous_energy = self.energy
        self._previous_max_residual = self._max_residual
        for direction in DIRECTIONS:
            if self.direction_blocked[direction]:
                continue
            self.last_expand_direction = direction
            expanded = self._expand_directionally(direction)
            if expanded and self.energy < self.previous_energy:
                self.direction_blocked = [False, False, False, False]
                return True
            if expanded:
                self._undo_last_expansion()
            self.direction_blocked[direction] = True
        return False

    def _undo_last_expansion(self) -> None:
        self.energy = self.previous_energy
        self._max_residual = self._previous_max_residual
        direction = self.last_expand_direction
        if direction == UP:
            self.board_idx = self.board_idx[1:, :].copy()
            self.board_coords = self.board_coords[1:, :, :].copy()
        elif direction == DOWN:
            self.board_idx = self.board_idx[:-1, :].copy()
            self.board_coords = self.board_coords[:-1, :, :].copy()
        elif direction == LEFT:
            self.board_idx = self.board_idx[:, 1:].copy()
            self.board_coords = self.board_coords[:, 1:, :].copy()
        elif direction == RIGHT:
            self.board_idx = self.board_idx[:, :-1].copy()
            self.board_coords = self.board_coords[:, :-1, :].copy()

    def _expand_directionally(self, direction: int) -> bool:
        coords = self.board_coords
        if direction == UP:
            predicted = 2.0 * coords[0] - coords[1]
        elif direction == DOWN:
            predicted = 2.0 * coords[-1] - coords[-2]
        elif direction == LEFT:
            predicted = 2.0 * coords[:, 0] - coords[:, 1]
        elif direction == RIGHT:
            predicted = 2.0 * coords[:, -1] - coords[:, -2]
        else:
            raise ValueError(f"unknown direction: {direction}")

        new_indices = self._find_closest_indices(predicted)
        if new_indices is None:
            return False
        new_coords = self.points[new_indices]

        if direction == UP:
            self.board_idx = np.concatenate([new_indices[None, :], self.board_idx], axis=0)
            self.board_coords = np.concatenate([new_coords[None, :, :], self.board_coords], axis=0)
        elif direction == DOWN:
            self.board_idx = np.concatenate([self.board_idx, new_indices[None, :]], axis=0)
            self.board_coords = np.concatenate([self.board_coords, new_coords[None, :, :]], axis=0)
        elif direction == LEFT:
            self.board_idx = np.concatenate([new_indices[:, None], self.board_idx], axis=1)
            self.board_coords = np.concatenate([new_coords[:, None, :], self.board_coords], axis=1)
        else:
            self.board_idx = np.concatenate([self.board_idx, new_indices[:, None]], axis=1)
            self.board_coords = np.concatenate([self.board_coords, new_coords[:, None, :]], axis=1)

        e = max(self._previous_max_residual, self._new_line_max_residual(direction))
        self._max_residual = e
        self.energy = self._energy_from_residual(e)
        return True

    def _new_line_max_residual(self, direction: int) -> float:
        """Max residual over the triples that contain the newly added row/column."""
        coords = self.board_coords
        if direction == UP:
            across = _triple_residuals(coords[0], coords[1], coords[2])
            line = coords[0]
        elif direction == DOWN:
            across = _triple_residuals(coords[-1], coords[-2], coords[-3])
            line = coords[-1]
        elif direction == LEFT:
            across = _triple_residuals(coords[:, 0], coords[:, 1], coords[:, 2])
            line = coords[:, 0]
        else:
            across = _triple_residuals(coords[:, -1], coords[:, -2], coords[:, -3])
            line = coords[:, -1]
        along = _triple_residuals(line[:-2], line[1:-1], line[2:])
        return max(_max_or_zero(across), _max_or_zero(along))

    def _find_closest_indices(self, predicted: np.ndarray) -> np.ndarray | None:
        """Nearest distinct unused point for each predicted location, or None."""
        available = np.ones(self.points.shape[0], dtype=bool)
        available[self.board_idx[self.board_idx >= 0]] = False

        indices = np.zeros(predicted.shape[0], dtype=np.int64)
        for i, p in enumerate(predicted):
            if not np.any(available):
                return None
            diffs = self.points - p
            dists = np.hypot(diffs[:, 0], diffs[:, 1])
            dists[~available] = np.inf
            idx = int(np.argmin(dists))
            if not np.isfinite(dists[idx]):
                return None
            indices[i] = idx
            available[idx] = False
        return indices

    # ------------------------------------------------------------------
    def rotate90(self, k: int = 1) -> Checkerboard:
        """Rotate the grid counter-clockwise by k*90 degrees (numpy.rot90 semantics)."""
        self.board_idx = np.rot90(self.board_idx, k).copy()
        self.board_coords = np.rot90(self.board_coords, k, axes=(0, 1)).copy()
        return self

    def to_points(self) -> tuple[np.ndarray, tuple[int, int]]:
        """
        Row-major (x, y) points of the board and its size in squares,
        `(rows + 1, cols + 1)`. Incomplete boards give an empty result.
        """
        if self.board_idx.size == 0 or np.any(self.board_idx < 0):
            return np.zeros((0, 2), dtype=np.float64), (0, 0)
        rows, cols = self.shape
        points = self.board_coords.reshape(-1, 2).astype(np.float64, copy=True)
        return points, (rows + 1, cols + 1)
