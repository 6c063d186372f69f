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

"""Flip-based quality improvement.

Cells whose smallest dihedral angle is below the threshold are improved by
local flips: 2-3 flips across their unlocked faces and removal of their
unlocked edges. Each candidate must be a valid replacement and must strictly
raise the smallest dihedral angle of the cells it touches. The best candidate
for a cell is applied; passes repeat until no flip applies or the pass limit
is reached.

Nearly flat cells, which arise between coplanar surface facets carrying
rounding creases, are always candidates, even when quality filtering is off.
"""

import logging
from collections.abc import Iterable
from itertools import combinations

from tetramesh.discretization._delaunay import (
    DelaunayTetrahedralization,
    EdgeKey,
    FaceKey,
    Tet,
    edge_key,
    face_key,
    oriented_faces,
)

logger = logging.getLogger(__name__)

# Cells with a smaller minimum dihedral angle, in radians, count as flat.
FLAT_DIHEDRAL_ANGLE = 1e-3


def _candidates(
    tri: DelaunayTetrahedralization,
    tid: int,
    locked_faces: set[FaceKey],
    locked_edges: set[EdgeKey],
) -> Iterable[tuple[list[int], list[Tet]]]:
    tet = tri.tets[tid]
    for face in oriented_faces(tet):
        key = face_key(*face)
        if key in locked_faces:
            continue
        candidate = tri.flip23(key)
        if candidate is not None:
            yield candidate
    for a, b in combinations(tet, 2):
        if edge_key(a, b) in locked_edges:
            continue
        for old_ids, new_tets, _ in tri.edge_removals(a, b):
            yield old_ids, new_tets


def improve_quality(
    tri: DelaunayTetrahedralization,
    threshold_angle: float,
    locked_faces: set[FaceKey],
    locked_edges: set[EdgeKey],
    max_passes: int,
) -> int:
    """Flip poorly shaped cells until none improves.

    Parameters
    ----------
    tri : DelaunayTetrahedralization
        Carved triangulation. Modified in place.
    threshold_angle : float
        Cells with a smaller minimum dihedral angle, in radians, are
        candidates. Below :data:`FLAT_DIHEDRAL_ANGLE` only flat cells are.
    locked_faces, locked_edges : set
        Surface faces and edges that flips must preserve.
    max_passes : int
        Maximum number of sweeps over the cells.

    Returns
    -------
    int
        Number of flips applied.
    """
    target_angle = max(threshold_angle, FLAT_DIHEDRAL_ANGLE)
    n_flips = 0
    for sweep in range(max_passes):
        flipped = 0
        for tid in list(tri.tets):
            if tid not in tri.tets:
                continue
            if tri.min_dihedral([tri.tets[tid]]) >= target_angle:
                continue

            best = None
            best_angle = None
            for old_ids, new_tets in _candidates(tri, tid, locked_faces, locked_edges):
                if not tri.is_valid_replacement(
                    old_ids, new_tets, locked_faces, locked_edges
                ):
                    continue
                before = tri.min_dihedral([tri.tets[i] for i in old_ids])
                after = tri.min_dihedral(new_tets)
                if after > before and (best_angle is None or after > best_angle):
                    best, best_angle = (old_ids, new_tets), after

            if best is not None:
                tri.replace(*best, locked_faces, locked_edges)
                flipped += 1
        n_flips += flipped
        logger.debug(f"Quality sweep {sweep}: {flipped} flips")
        if flipped == 0:
            break
    return n_flips
