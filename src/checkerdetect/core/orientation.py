from __future__ import annotations

import math

import numpy as np


_COS45 = math.cos(math.pi / 4.0)
_SIN45 = math.sin(math.pi / 4.0)


def _sym_eigvec(a: float, b: float, c: float) -> tuple[float, float]:
    """
    Unit eigenvector (cs, sn) of the symmetric matrix [[a, b], [b, c]] for its
    eigenvalue of larger magnitude (LAPACK slaev2 rotation).
    """
    sm = a + c
    df = a - c
    adf = abs(df)
    tb = b + b
    ab = abs(tb)

    if adf > ab:
        rt = adf * math.sqrt(1.0 + (ab / adf) ** 2)
    elif adf < ab:
        rt = ab * math.sqrt(1.0 + (adf / ab) ** 2)
    else:
        rt = ab * math.sqrt(2.0)

    sgn1 = -1 if sm < 0 else 1
    if df > 0:
        cs = df + rt
        sgn2 = 1
    else:
        cs = df - rt
        sgn2 = -1

    acs = abs(cs)
    if acs > ab:
        ct = -tb / cs
        sn1 = 1.0 / math.sqrt(1.0 + ct * ct)
        cs1 = ct * sn1
    elif ab == 0.0:
        cs1 = 1.0
        sn1 = 0.0
    else:
        tn = -cs / tb
        cs1 = 1.0 / math.sqrt(1.0 + tn * tn)
        sn1 = tn * cs1

    if sgn1 == sgn2:
        cs1, sn1 = -sn1, cs1
    return cs1, sn1


def corner_orientations(
    Ix2: np.ndarray,
    Iy2: np.ndarray,
    IxIy: np.ndarray,
    p: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Candidate edge directions at the integer 1-based pixel `p = (x, y)`.

    The eigenvectors of the structure tensor follow the diagonals of a saddle, so
    both are rotated by 45 degrees to line up with the square edges.
    """
    col = int(p[0]) - 1
    row = int(p[1]) - 1
    a = float(Ix2[row, col])
    b = float(IxIy[row, col])
    c = float(Iy2[row, col])

    cs1, sn1 = _sym_eigvec(a, b, c)

    # Row vector times [[cos, -sin], [sin, cos]].
    v1 = np.array([-sn1 * _COS45 + cs1 * _SIN45, sn1 * _SIN45 + cs1 * _COS45], dtype=np.float64)
    v2 = np.array([cs1 * _COS45 + sn1 * _SIN45, -cs1 * _SIN45 + sn1 * _COS45], dtype=np.float64)
    return v1, v2


def orientation_matches(v1: np.ndarray, v2: np.ndarray, theta: float, angle_threshold: float) -> bool:
    """True when either edge direction is consistent with the board orientation `theta`."""
    alpha1 = abs(math.atan2(float(v1[1]), float(v1[0])))
    alpha2 = abs(math.atan2(float(v2[1]), float(v2[0])))
    off1 = abs(abs(alpha1 - math.pi) - theta)
    off2 = abs(abs(alpha2 - math.pi) - theta)
    return off1 <= angle_threshold or off2 <= angle_threshold
