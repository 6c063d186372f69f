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

"""Tetrahedral mesh validation to detect common errors and degenerate cases."""

from collections.abc import Mapping
from typing import TYPE_CHECKING

import torch

from tetramesh.boundaries import get_overshared_faces
from tetramesh.geometry._predicates import orient3d
from tetramesh.geometry._tetrahedra import compute_signed_volumes
from tetramesh.utilities._duplicate_detection import find_duplicate_pairs
from tetramesh.utilities._tolerances import coincidence_tolerance

if TYPE_CHECKING:
    from tetramesh.volume.cell_mesh import CellMesh


def validate_cell_mesh(
    mesh: "CellMesh",
    check_out_of_bounds: bool = True,
    check_duplicate_vertices: bool = True,
    check_degenerate_cells: bool = True,
    check_inverted_cells: bool = True,
    check_duplicate_cells: bool = True,
    check_conformity: bool = True,
    exact_orientation: bool = False,
    tolerance: float | None = None,
    raise_on_error: bool = False,
) -> Mapping[str, bool | int | torch.Tensor]:
    """Validate tetrahedral mesh integrity.

    Parameters
    ----------
    mesh : CellMesh
        Tetrahedral mesh to validate.
    check_out_of_bounds : bool
        Check that cell indices are valid.
    check_duplicate_vertices : bool
        Check for coincident vertices within tolerance.
    check_degenerate_cells : bool
        Check for cells with volume below ``tolerance ** 3``, or with zero
        exact orientation if ``exact_orientation`` is set.
    check_inverted_cells : bool
        Check for cells with negative orientation.
    check_duplicate_cells : bool
        Check for cells over the same vertex set, in any order.
    check_conformity : bool
        Check that no face is shared by more than two cells.
    exact_orientation : bool
        Classify degenerate and inverted cells with the exact
        :func:`~tetramesh.geometry.orient3d` predicate instead of floating
        point volumes. Nearly flat cells that are positively oriented then
        pass.
    tolerance : float | None
        Distance tolerance. If ``None`` (default), uses
        :func:`~tetramesh.utilities.coincidence_tolerance` of the points.
    raise_on_error : bool
        If True, raise ValueError on first error. If False, return dict with
        all validation results.

    Returns
    -------
    Mapping[str, bool | int | torch.Tensor]
        Dictionary with validation results:
            - "valid": bool, True if all enabled checks passed
            - "n_out_of_bounds_cells" / "out_of_bounds_cell_indices"
            - "n_duplicate_vertices" / "duplicate_vertex_pairs"
            - "n_degenerate_cells" / "degenerate_cell_indices"
            - "n_inverted_cells" / "inverted_cell_indices"
            - "n_duplicate_cells" / "duplicate_cell_indices"
            - "n_overshared_faces" / "overshared_faces"

        Index tensors are only present if problems were found.

    Raises
    ------
    ValueError
        If raise_on_error=True and validation fails.

    Examples
    --------
    >>> import torch
    >>> from tetramesh.volume import CellMesh
    >>> points = torch.tensor([[0., 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
    >>> mesh = CellMesh(points=points, cells=torch.tensor([[0, 1, 2, 3]]))
    >>> report = validate_cell_mesh(mesh)
    >>> assert report["valid"] == True
    """
    if tolerance is None:
        tolerance = coincidence_tolerance(mesh.points)

    results = {
        "valid": True,
    }

    ### Check for out-of-bounds indices FIRST (before any geometric computations)
    if check_out_of_bounds:
        n_out_of_bounds = 0
        if mesh.n_cells > 0:
            out_of_bounds_cells = ((mesh.cells < 0) | (mesh.cells >= mesh.n_points)).any(
                dim=1
            )
            n_out_of_bounds = out_of_bounds_cells.sum().item()
            if n_out_of_bounds > 0:
                results["valid"] = False
                results["out_of_bounds_cell_indices"] = torch.where(out_of_bounds_cells)[0]
                if raise_on_error:
                    raise ValueError(
                        f"Found {n_out_of_bounds} cells with out-of-bounds indices.\n"
                        f"Cell indices must be in range [0, {mesh.n_points}).\n"
                        f"Problem cells: {results['out_of_bounds_cell_indices'].tolist()[:10]}"
                    )
        results["n_out_of_bounds_cells"] = n_out_of_bounds

        ### Geometry cannot be computed with invalid indices
        if n_out_of_bounds > 0:
            return results

    ### Check for duplicate vertices
    if check_duplicate_vertices:
        duplicate_pairs = find_duplicate_pairs(mesh.points, tolerance)
        n_duplicates = len(duplicate_pairs)
        results["n_duplicate_vertices"] = n_duplicates
        if n_duplicates > 0:
            results["valid"] = False
            results["duplicate_vertex_pairs"] = duplicate_pairs
            if raise_on_error:
                raise ValueError(
                    f"Found {n_duplicates} pairs of duplicate vertices "
                    f"(within {tolerance=}).\n"
                    f"First few pairs: {duplicate_pairs[:5].tolist()}"
                )

    signed_volumes = None
    if mesh.n_cells > 0 and (check_degenerate_cells or check_inverted_cells):
        if exact_orientation:
            signed_volumes = _exact_orientations(mesh)
        else:
            signed_volumes = compute_signed_volumes(mesh.cell_vertices)

    ### Check for degenerate cells
    if check_degenerate_cells:
        n_degenerate = 0
        if signed_volumes is not None:
            if exact_orientation:
                volume_tolerance = 0.0
                degenerate_mask = signed_volumes == 0
            else:
                # Volumes have units of length^3
                volume_tolerance = tolerance**3
                degenerate_mask = signed_volumes.abs() < volume_tolerance
            n_degenerate = degenerate_mask.sum().item()
            if n_degenerate > 0:
                results["valid"] = False
                results["degenerate_cell_indices"] = torch.where(degenerate_mask)[0]
                if raise_on_error:
                    raise ValueError(
                        f"Found {n_degenerate} degenerate cells with volume < "
                        f"{volume_tolerance}.\n"
                        f"Problem cells: {results['degenerate_cell_indices'].tolist()[:10]}"
                    )
        results["n_degenerate_cells"] = n_degenerate

    ### Check for inverted cells (cells with negative orientation)
    if check_inverted_cells:
        n_inverted = 0
        if signed_volumes is not None:
            inverted_mask = signed_volumes < 0
            n_inverted = inverted_mask.sum().item()
            if n_inverted > 0:
                results["valid"] = False
                results["inverted_cell_indices"] = torch.where(inverted_mask)[0]
                if raise_on_error:
                    raise ValueError(
                        f"Found {n_inverted} inverted cells (negative orientation).\n"
                        f"Problem cells: {results['inverted_cell_indices'].tolist()[:10]}"
                    )
        results["n_inverted_cells"] = n_inverted

    ### Check for duplicate cells (same vertex set in any order)
    if check_duplicate_cells:
        n_duplicate_cells, duplicate_cells = check_duplicate_cells_in_mesh(mesh)
        results["n_duplicate_cells"] = n_duplicate_cells
        if n_duplicate_cells > 0:
            results["valid"] = False
            results["duplicate_cell_indices"] = duplicate_cells
            if raise_on_error:
                raise ValueError(
                    f"Found {n_duplicate_cells} duplicate cells.\n"
                    f"Problem cells: {duplicate_cells.tolist()[:10]}"
                )

    ### Check conformity: a face borders at most two cells
    if check_conformity:
        overshared = get_overshared_faces(mesh)
        results["n_overshared_faces"] = len(overshared)
        if len(overshared) > 0:
            results["valid"] = False
            results["overshared_faces"] = overshared
            if raise_on_error:
                raise ValueError(
                    f"Mesh is not conforming: {len(overshared)} faces shared by >2 cells.\n"
                    f"First few problem faces: {overshared[:5].tolist()}"
                )

    return results


def check_duplicate_cells_in_mesh(mesh: "CellMesh") -> tuple[int, torch.Tensor]:
    """Find cells that repeat the vertex set of an earlier cell.

    Two tetrahedra over the same four vertices are the same cell regardless
    of vertex order, so cells are compared after sorting their indices.

    Parameters
    ----------
    mesh : CellMesh
        Mesh to check.

    Returns
    -------
    tuple[int, torch.Tensor]
        Tuple of (n_duplicate_cells, duplicate_cell_indices). The first
        occurrence of each vertex set is not counted.

    Examples
    --------
    >>> import torch
    >>> from tetramesh.volume import CellMesh
    >>> points = torch.tensor([[0., 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
    >>> cells = torch.tensor([[0, 1, 2, 3], [1, 0, 3, 2]])
    >>> n_duplicates, indices = check_duplicate_cells_in_mesh(CellMesh(points, cells))
    >>> n_duplicates, indices.tolist()
    (1, [1])
    """
    if mesh.n_cells == 0:
        return 0, torch.tensor([], dtype=torch.long, device=mesh.cells.device)

    sorted_cells = torch.sort(mesh.cells, dim=1).values
    _, inverse = torch.unique(sorted_cells, dim=0, return_inverse=True)

    # A cell is a duplicate if an earlier cell maps to the same unique row
    first_occurrence = torch.full(
        (int(inverse.max().item()) + 1,),
        mesh.n_cells,
        dtype=torch.long,
        device=mesh.cells.device,
    )
    cell_ids = torch.arange(mesh.n_cells, device=mesh.cells.device)
    first_occurrence.scatter_reduce_(0, inverse, cell_ids, reduce="amin")
    duplicate_mask = first_occurrence[inverse] != cell_ids

    duplicate_indices = torch.where(duplicate_mask)[0]
    return len(duplicate_indices), duplicate_indices


def _exact_orientations(mesh: "CellMesh") -> torch.Tensor:
    """Exact orientation sign of every cell, shape ``(n_cells,)``, int64."""
    points = [tuple(p) for p in mesh.points.double().tolist()]
    return torch.tensor(
        [orient3d(*(points[v] for v in cell)) for cell in mesh.cells.tolist()],
        dtype=torch.int64,
        device=mesh.cells.device,
    )
