# SPDX-FileCopyrightText: Copyright (c) 2023 - 2026 NVIDIA CORPORATION & AFFILIATES.
# SPDX-FileCopyrightText: All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Robust geometric predicates for 3D Delaunay construction.

Two predicates drive the whole discretizer:

- :func:`orient3d` gives the sign of ``det[b - a, c - a, d - a]``. It is
  positive when ``d`` lies on the side of plane ``abc`` that the normal
  ``(b - a) x (c - a)`` points to, i.e. when ``(a, b, c, d)`` is a
  positively oriented tetrahedron.
- :func:`insphere` is positive when ``e`` lies strictly inside the
  circumsphere of the positively oriented tetrahedron ``(a, b, c, d)``,
  zero when cospherical and negative outside.

Both are evaluated in floating point first. When the result is smaller than
a forward error bound, it is recomputed exactly with :class:`fractions.Fraction`
(every finite float is an exact rational), so the returned sign is always
correct. Cospherical and coplanar configurations such as the corners of a
cube are therefore classified exactly, which the tie-breaking rules of the
insertion algorithm rely on.

Points are plain ``(x, y, z)`` tuples of Python floats. The batched tensor
geometry lives in :mod:`tetramesh.geometry._tetrahedra`.
"""

from fractions import Fraction

Point = tuple[float, float, float]

# Generous multiples of the Shewchuk static error bounds
# (7.8e-16 for orient3d, 1.8e-15 for insphere).
_ORIENT3D_ERRBOUND = 1e-14
_INSPHERE_ERRBOUND = 1e-12


def _sign(x) -> int:
    return (x > 0) - (x < 0)


def _det3(u, v, w):
    return (
        u[0] * (v[1] * w[2] - v[2] * w[1])
        - u[1] * (v[0] * w[2] - v[2] * w[0])
        + u[2] * (v[0] * w[1] - v[1] * w[0])
    )


def _permanent3(u, v, w) -> float:
    ### Same expansion as _det3 with every term made non-negative
    au = [abs(x) for x in u]
    av = [abs(x) for x in v]
    aw = [abs(x) for x in w]
    return (
        au[0] * (av[1] * aw[2] + av[2] * aw[1])
        + au[1] * (av[0] * aw[2] + av[2] * aw[0])
        + au[2] * (av[0] * aw[1] + av[1] * aw[0])
    )


def _sub(p, q):
    return (p[0] - q[0], p[1] - q[1], p[2] - q[2])


def _orient3d_value(a, b, c, d):
    return _det3(_sub(b, a), _sub(c, a), _sub(d, a))


def _insphere_value(a, b, c, d, e):
    ### Lifted 4x4 determinant, expanded along the lifted column
    rows = [_sub(p, e) for p in (a, b, c, d)]
    lifts = [r[0] * r[0] + r[1] * r[1] + r[2] * r[2] for r in rows]
    ra, rb, rc, rd = rows
    det4 = (
        -lifts[0] * _det3(rb, rc, rd)
        + lifts[1] * _det3(ra, rc, rd)
        - lifts[2] * _det3(ra, rb, rd)
        + lifts[3] * _det3(ra, rb, rc)
    )
    # det4 is negative for e inside a positively oriented tetrahedron
    return -det4, rows, lifts


def orient3d(a: Point, b: Point, c: Point, d: Point) -> int:
    """Exact sign of the orientation of tetrahedron ``(a, b, c, d)``.

    Parameters
    ----------
    a, b, c, d : tuple[float, float, float]
        Vertex coordinates.

    Returns
    -------
    int
        ``+1`` if ``(a, b, c, d)`` is positively oriented, ``-1`` if
        negatively oriented, ``0`` if the four points are coplanar.

    Examples
    --------
    >>> orient3d((0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1))
    1
    >>> orient3d((0, 0, 0), (0, 1, 0), (1, 0, 0), (0, 0, 1))
    -1
    >>> orient3d((0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0))
    0
    """
    u, v, w = _sub(b, a), _sub(c, a), _sub(d, a)
    det = _det3(u, v, w)
    errbound = _ORIENT3D_ERRBOUND * _permanent3(u, v, w)
    if det > errbound or -det > errbound:
        return _sign(det)

    ### Ambiguous in floating point: redo the computation exactly
    fa, fb, fc, fd = (tuple(Fraction(x) for x in p) for p in (a, b, c, d))
    return _sign(_orient3d_value(fa, fb, fc, fd))


def insphere(a: Point, b: Point, c: Point, d: Point, e: Point) -> int:
    """Exact in-circumsphere test for a positively oriented tetrahedron.

    Parameters
    ----------
    a, b, c, d : tuple[float, float, float]
        Vertices of a positively oriented tetrahedron
        (``orient3d(a, b, c, d) > 0``).
    e : tuple[float, float, float]
        Query point.

    Returns
    -------
    int
        ``+1`` if ``e`` lies strictly inside the circumsphere, ``0`` if it
        lies on it, ``-1`` if outside. The sign is reversed for negatively
        oriented tetrahedra.

    Examples
    --------
    >>> tet = ((0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1))
    >>> insphere(*tet, (0.1, 0.1, 0.1))
    1
    >>> insphere(*tet, (1.0, 1.0, 1.0))
    0
    >>> insphere(*tet, (2.0, 2.0, 2.0))
    -1
    """
    value, rows, lifts = _insphere_value(a, b, c, d, e)
    ra, rb, rc, rd = rows
    permanent = (
        lifts[0] * _permanent3(rb, rc, rd)
        + lifts[1] * _permanent3(ra, rc, rd)
        + lifts[2] * _permanent3(ra, rb, rd)
        + lifts[3] * _permanent3(ra, rb, rc)
    )
    errbound = _INSPHERE_ERRBOUND * permanent
    if value > errbound or -value > errbound:
        return _sign(value)

    fa, fb, fc, fd, fe = (tuple(Fraction(x) for x in p) for p in (a, b, c, d, e))
    return _sign(_insphere_value(fa, fb, fc, fd, fe)[0])


def segment_crosses_triangle(p: Point, q: Point, a: Point, b: Point, c: Point) -> bool:
    """Whether the open segment ``pq`` crosses the open triangle ``abc``.

    Touching the triangle boundary, or the segment lying in the triangle's
    plane, does not count as a crossing.
    """
    side_p = orient3d(a, b, c, p)
    side_q = orient3d(a, b, c, q)
    if side_p == 0 or side_q == 0 or side_p == side_q:
        return False
    s1 = orient3d(p, q, a, b)
    s2 = orient3d(p, q, b, c)
    s3 = orient3d(p, q, c, a)
    return s1 != 0 and s1 == s2 == s3
