from __future__ import annotations

import numpy as np
import pytest

from checkerdetect.core.peaks import find_peaks, peak_scores


def _bump(shape, row, col, amp=1.0, s=1.5):
    rr, cc = np.mgrid[0 : shape[0], 0 : shape[1]]
    return amp * np.exp(-((rr - row) ** 2 + (cc - col) ** 2) / (2 * s * s))


def test_single_peak_is_one_based_xy() -> None:
    m = _bump((12, 16), row=5, col=7)
    pts = find_peaks(m, 0.5)
    assert pts.shape == (1, 2)
    assert pts[0].tolist() == [8.0, 6.0]


def test_quality_threshold_drops_weak_peaks() -> None:
    m = _bump((20, 30), row=5, col=5) + _bump((20, 30), row=12, col=22, amp=0.3)
    assert find_peaks(m, 0.5).shape[0] == 1
    both = find_peaks(m, 0.1)
    # Raster order: the upper peak comes first.
    assert both.tolist() == [[6.0, 6.0], [23.0, 13.0]]


def test_plateau_reports_single_peak() -> None:
    m = np.zeros((8, 8))
    m[3, 3] = 1.0
    m[3, 4] = 1.0
    m[4, 3] = 1.0
    pts = find_peaks(m, 0.5)
    assert pts.tolist() == [[4.0, 4.0]]


def test_border_maxima_are_ignored() -> None:
    m = np.zeros((6, 6))
    m[0, 2] = 1.0
    m[3, 5] = 1.0
    assert find_peaks(m, 0.1).shape == (0, 2)


def test_empty_and_flat_maps() -> None:
    assert find_peaks(np.zeros((10, 10)), 0.2).shape == (0, 2)
    assert find_peaks(np.ones((2, 2)), 0.2).shape == (0, 2)


@pytest.mark.parametrize("q", [-0.1, 1.1])
def test_quality_out_of_range(q) -> None:
    with pytest.raises(ValueError):
        find_peaks(np.zeros((5, 5)), q)


def test_peak_scores_reads_metric_values() -> None:
    m = _bump((12, 16), row=5, col=7)
    pts = find_peaks(m, 0.5)
    assert peak_scores(m, pts).tolist() == [pytest.approx(1.0)]
    assert peak_scores(m, np.zeros((0, 2))).shape == (0,)
