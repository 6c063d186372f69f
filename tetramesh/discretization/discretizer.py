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

"""Discretization of closed boundary surfaces into tetrahedral meshes.

The pipeline, run by :class:`TetrahedralDiscretizer`:

1. Validate the configuration and the surface: enough vertices and faces, no
   coincident vertices, closed, consistently and outward oriented. All of
   these run before any tetrahedralization work.
2. Insert every surface vertex, in input order, into a Delaunay
   tetrahedralization seeded with a bounding super-tetrahedron.
3. Recover every surface triangle as a face, by flips or Steiner points.
4. Carve away everything outside the surface, which also removes every cell
   touching the super-tetrahedron.
5. Flip away slivers below the configured dihedral angle threshold and
   report the ones that remain.
6. Drop duplicate cells, compact the point pool, and validate the result.
"""

import logging
from abc import ABC, abstractmethod

import torch

from tetramesh.discretization._delaunay import DelaunayTetrahedralization, face_key
from tetramesh.discretization._quality import improve_quality
from tetramesh.discretization._recovery import (
    SurfaceConstraints,
    carve_interior,
    recover_boundary,
)
from tetramesh.discretization.config import DiscretizerConfig
from tetramesh.exceptions import (
    ConfigurationError,
    DegenerateInputError,
    MeshInvariantError,
    QualityError,
    QualityWarning,
)
from tetramesh.geometry._tetrahedra import TET_FACES, compute_min_dihedral_angles
from tetramesh.surface._topology import check_closed, check_consistent_orientation
from tetramesh.surface.polymesh import PolyMesh
from tetramesh.utilities._duplicate_detection import find_duplicate_pairs
from tetramesh.utilities._tolerances import coincidence_tolerance
from tetramesh.validation.validate import validate_cell_mesh
from tetramesh.volume.cell import Tetrahedron
from tetramesh.volume.cell_mesh import CellMesh

logger = logging.getLogger(__name__)

# Number of offending vertex pairs quoted in error messages.
_MAX_REPORTED_PAIRS = 10


class Discretizer(ABC):
    """Capability: turn a closed boundary surface into a volumetric mesh."""

    @abstractmethod
    def discretize(
        self, surface: PolyMesh, config: DiscretizerConfig | None = None
    ) -> tuple[CellMesh, list[QualityWarning]]:
        """Discretize ``surface`` into a :class:`CellMesh`.

        Returns
        -------
        tuple[CellMesh, list[QualityWarning]]
            The mesh and every cell that remained below the quality threshold.
        """


class TetrahedralDiscretizer(Discretizer):
    """Constrained Delaunay tetrahedral discretizer.

    Instances hold no state between calls; every :meth:`discretize` call owns
    its working data.

    Examples
    --------
    >>> from tetramesh.primitives import cube
    >>> mesh, warnings = TetrahedralDiscretizer().discretize(
    ...     cube.load(), DiscretizerConfig(threshold_angle=0.0)
    ... )
    >>> round(mesh.total_volume, 6)
    1.0
    >>> warnings
    []
    """

    def discretize(
        self, surface: PolyMesh, config: DiscretizerConfig | None = None
    ) -> tuple[CellMesh, list[QualityWarning]]:
        """Discretize a closed, outward-oriented surface into tetrahedra.

        Parameters
        ----------
        surface : PolyMesh
            Closed boundary mesh with faces counter-clockwise seen from
            outside. Polygon faces are fanned into triangles around their
            centroids. The surface is not modified.
        config : DiscretizerConfig | None
            Quality and robustness parameters. ``None`` uses the defaults.

        Returns
        -------
        tuple[CellMesh, list[QualityWarning]]
            The tetrahedral mesh and the cells whose minimum dihedral angle
            stayed below ``config.threshold_angle``. The mesh carries:

            - ``cell_data["boundary_face_ids"]``: ``(n_cells, 4)``, for the
              face opposite each local vertex, the index of the surface face
              it lies on, or ``-1`` for interior faces.
            - ``cell_data["min_dihedral_angle"]``: ``(n_cells,)`` radians.
            - ``point_data["is_steiner"]``: True for points that are not
              surface vertices (polygon centroids and recovery Steiner
              points).
            - ``global_data``: ``n_steiner_points``, ``n_flips`` and
              ``threshold_angle``.

        Raises
        ------
        ConfigurationError
            If ``config`` is not a :class:`DiscretizerConfig`.
        DegenerateInputError
            If the surface has fewer than four vertices or faces, has
            coincident vertices, or encloses no volume.
        OpenSurfaceError
            If an edge is not shared by exactly two faces.
        InconsistentOrientationError
            If the faces are not consistently oriented, or face inward.
        BoundaryRecoveryError
            If recovering the surface needs more Steiner points than allowed.
        QualityError
            If ``config.strict`` is set and slivers remain.
        """
        config = _resolve_config(config)
        if not isinstance(surface, PolyMesh):
            raise TypeError(f"surface must be a PolyMesh, got {type(surface)=}.")

        check_surface(surface, config)
        triangles, origins, points = _triangulate(surface, config)

        ### Insert surface vertices in input order
        referenced = sorted({v for triangle in triangles for v in triangle})
        n_unreferenced = surface.n_vertices - sum(
            1 for v in referenced if v < surface.n_vertices
        )
        if n_unreferenced > 0:
            logger.warning(
                f"Skipping {n_unreferenced} surface vertices not referenced by any face"
            )

        tri = DelaunayTetrahedralization(points.tolist())
        for vertex in referenced:
            tri.insert_vertex(vertex)
        logger.debug(f"Delaunay tetrahedralization has {len(tri.tets)} cells")

        ### Recover the surface, carve, and remove slivers
        constraints = SurfaceConstraints(triangles, origins)
        n_steiner = recover_boundary(
            tri, constraints, config.steiner_budget(surface.n_faces)
        )
        carve_interior(tri, constraints)
        n_flips = improve_quality(
            tri,
            config.threshold_angle,
            locked_faces=constraints.keys(),
            locked_edges=constraints.edges(),
            max_passes=config.max_flip_passes,
        )

        mesh = _assemble(tri, constraints, n_input_points=surface.n_vertices)
        mesh.global_data["n_steiner_points"] = torch.tensor(n_steiner)
        mesh.global_data["n_flips"] = torch.tensor(n_flips)
        mesh.global_data["threshold_angle"] = torch.tensor(
            config.threshold_angle, dtype=torch.float64
        )

        warnings = _quality_warnings(mesh, config.threshold_angle)
        logger.info(
            f"Discretized surface with {surface.n_vertices} vertices and "
            f"{surface.n_faces} faces into {mesh.n_cells} tetrahedra "
            f"({n_steiner} Steiner points, {n_flips} flips, "
            f"{len(warnings)} quality warnings)"
        )
        if warnings:
            if config.strict:
                raise QualityError(
                    f"{len(warnings)} cells are below the dihedral angle threshold "
                    f"of {config.threshold_angle:.6g} rad; first: {warnings[0]}",
                    warnings=warnings,
                )
            logger.warning(
                f"{len(warnings)} cells remain below the dihedral angle threshold "
                f"of {config.threshold_angle:.6g} rad"
            )
        return mesh, warnings


def discretize(
    surface: PolyMesh, config: DiscretizerConfig | None = None
) -> tuple[CellMesh, list[QualityWarning]]:
    """Discretize ``surface`` with :class:`TetrahedralDiscretizer`.

    See :meth:`TetrahedralDiscretizer.discretize`.
    """
    return TetrahedralDiscretizer().discretize(surface, config)


def check_surface(surface: PolyMesh, config: DiscretizerConfig) -> None:
    """Run every input check, cheapest first.

    Raises
    ------
    DegenerateInputError, OpenSurfaceError, InconsistentOrientationError
        As documented on :meth:`TetrahedralDiscretizer.discretize`.
    """
    if surface.n_vertices < 4 or surface.n_faces < 4:
        raise DegenerateInputError(
            f"A closed surface needs at least 4 vertices and 4 faces, got "
            f"{surface.n_vertices=} and {surface.n_faces=}."
        )
    _check_coincident_vertices(surface.points, config)
    check_closed(surface)
    check_consistent_orientation(surface)


def _resolve_config(config: DiscretizerConfig | None) -> DiscretizerConfig:
    if config is None:
        return DiscretizerConfig()
    if not isinstance(config, DiscretizerConfig):
        raise ConfigurationError(
            f"config must be a DiscretizerConfig or None, got {type(config)=}."
        )
    return config


def _check_coincident_vertices(points: torch.Tensor, config: DiscretizerConfig) -> None:
    tolerance = coincidence_tolerance(points, config.tolerance)
    pairs = find_duplicate_pairs(points, tolerance)
    if len(pairs) > 0:
        raise DegenerateInputError(
            f"Found {len(pairs)} pairs of coincident vertices (within {tolerance=:.3g}).\n"
            f"First few pairs: {pairs[:_MAX_REPORTED_PAIRS].tolist()}"
        )


def _triangulate(
    surface: PolyMesh, config: DiscretizerConfig
) -> tuple[list[tuple[int, int, int]], list[int], torch.Tensor]:
    """Surface triangles, their originating face indices, and the point pool.

    Polygons are fanned around an appended centroid vertex, one triangle per
    polygon edge, so the origins follow directly from the face sizes.
    """
    faces = list(surface.iter_faces())
    origins = [index for index, face in enumerate(faces) for _ in range(_n_triangles(face))]
    if all(len(face) == 3 for face in faces):
        return [tuple(face) for face in faces], origins, surface.points

    triangle_mesh = surface.to_triangle_mesh()
    points = triangle_mesh.points
    # Centroids of non-convex polygons can land on existing vertices
    _check_coincident_vertices(points, config)
    triangles = [tuple(face) for face in triangle_mesh.iter_faces()]
    return triangles, origins, points


def _n_triangles(face: tuple[int, ...]) -> int:
    return 1 if len(face) == 3 else len(face)


def _assemble(
    tri: DelaunayTetrahedralization,
    constraints: SurfaceConstraints,
    n_input_points: int,
) -> CellMesh:
    """Build the output mesh from the carved triangulation."""
    ### Deduplicate with cell identity
    seen: set[Tetrahedron] = set()
    kept = []
    for tet in tri.tets.values():
        cell = Tetrahedron(*(tri.points[v] for v in tet))
        if cell in seen:
            logger.warning(f"Discarding duplicate cell {tet}")
            continue
        seen.add(cell)
        kept.append(tet)

    ### Strip auxiliary vertices and compact
    used = sorted({v for tet in kept for v in tet})
    auxiliary = [v for v in used if tri.is_super_vertex(v)]
    if auxiliary:
        raise MeshInvariantError(
            f"Output cells reference super-tetrahedron vertices {auxiliary}."
        )
    remap = {old: new for new, old in enumerate(used)}

    points = torch.tensor([tri.points[v] for v in used], dtype=torch.float64).reshape(-1, 3)
    cells = torch.tensor(
        [[remap[v] for v in tet] for tet in kept], dtype=torch.int64
    ).reshape(-1, 4)

    ### Provenance of each cell face
    boundary_face_ids = torch.tensor(
        [
            [
                _origin_or_minus_one(constraints, face_key(*(tet[i] for i in local)))
                for local in TET_FACES
            ]
            for tet in kept
        ],
        dtype=torch.int64,
    ).reshape(-1, 4)

    mesh = CellMesh(
        points=points,
        cells=cells,
        cell_type=Tetrahedron,
        point_data={
            "is_steiner": torch.tensor([v >= n_input_points for v in used], dtype=torch.bool)
        },
        cell_data={
            "boundary_face_ids": boundary_face_ids,
            "min_dihedral_angle": compute_min_dihedral_angles(points[cells]),
        },
    )

    # Cells were accepted with exact predicates; judge them the same way
    report = validate_cell_mesh(mesh, exact_orientation=True)
    if not report["valid"]:
        problems = {
            key: value
            for key, value in report.items()
            if key.startswith("n_") and value
        }
        raise MeshInvariantError(f"Discretized mesh failed validation: {problems}")
    return mesh


def _origin_or_minus_one(constraints: SurfaceConstraints, key: tuple[int, int, int]) -> int:
    origin = constraints.origin_of(key)
    return -1 if origin is None else origin


def _quality_warnings(mesh: CellMesh, threshold_angle: float) -> list[QualityWarning]:
    """One warning per cell whose minimum dihedral angle is below the threshold."""
    if threshold_angle <= 0 or mesh.n_cells == 0:
        return []
    angles = mesh.cell_data["min_dihedral_angle"]
    bad = torch.where(angles < threshold_angle)[0].tolist()
    return [
        QualityWarning(
            cell_index=index,
            vertex_indices=tuple(mesh.cells[index].tolist()),
            min_dihedral_angle=angles[index].item(),
            threshold_angle=threshold_angle,
        )
        for index in bad
    ]
