from __future__ import annotations

import math

import numpy as np
import pytest

from checkerdetect.core.orientation import _sym_eigvec, corner_orientations, orientation_matches


def test_sym_eigvec_matches_dominant_eigenvector() -> None:
    rng = np.random.default_rng(0)
    for _ in range(200):
        a, b, c = rng.normal(size=3)
        M = np.array([[a, b], [b, c]])
        w, _ = np.linalg.eigh(M)
        if abs(abs(w[0]) - abs(w[1])) < 1e-6:
            continue
        lam = w[np.argmax(np.abs(w))]
        v = np.array(_sym_eigvec(a, b, c))
        assert np.linalg.norm(v) == pytest.approx(1.0)
        assert np.allclose(M @ v, lam * v, atol=1e-9)


def test_sym_eigvec_diagonal_and_zero() -> None:
    cs, sn = _sym_eigvec(3.0, 0.0, 1.0)
    assert abs(cs) == pytest.approx(1.0)
    assert sn == pytest.approx(0.0)
    assert _sym_eigvec(0.0, 0.0, 0.0) == (1.0, 0.0)


def test_corner_orientations_are_orthonormal_and_diagonal_to_gradient() -> None:
    Ix2 = np.zeros((5, 5))
    Iy2 = np.zeros((5, 5))
    IxIy = np.zeros((5, 5))
    # Gradient energy along x at pixel (x=3, y=2).
    Ix2[1, 2] = 4.0
    Iy2[1, 2] = 1.0
    v1, v2 = corner_orientations(Ix2, Iy2, IxIy, np.array([3, 2]))
    assert np.linalg.norm(v1) == pytest.approx(1.0)
    assert np.linalg.norm(v2) == pytest.approx(1.0)
    assert float(v1 @ v2) == pytest.approx(0.0, abs=1e-12)
    assert abs(v1[0]) == pytest.approx(math.sqrt(0.5))
    assert abs(v1[1]) == pytest.approx(math.sqrt(0.5))


def test_orientation_matches_axis_aligned() -> None:
    thr = 3 * math.pi / 16
    assert orientation_matches(np.array([-1.0, 0.0]), np.array([0.0, 1.0]), 0.0, thr)
    assert not orientation_matches(np.array([0.0, 1.0]), np.array([1.0, 0.0]), 0.0, thr)


def test_orientation_matches_diagonal() -> None:
    thr = 3 * math.pi / 16
    s = math.sqrt(0.5)
    assert orientation_matches(np.array([-s, s]), np.array([s, s]), math.pi / 4, thr)
    assert not orientation_matches(np.array([-s, s]), np.array([s, s]), 0.0, thr)
