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

"""Volumetric cell mesh produced by the discretizer."""

from collections.abc import Iterator

import torch
from tensordict import TensorDict

from tetramesh.boundaries._detection import get_boundary_faces
from tetramesh.geometry._tetrahedra import (
    compute_dihedral_angles,
    compute_signed_volumes,
)
from tetramesh.volume.cell import Cell, Tetrahedron

# Sub-dict of ``cell_data`` holding derived per-cell geometry.
_CACHE_KEY = "_cache"


class CellMesh:
    r"""A collection of volumetric cells sharing a point pool.

    The mesh is defined by two tensors, ``points`` of shape
    :math:`(N_p, 3)` and ``cells`` of shape :math:`(N_c, V)`, where
    :math:`V` is ``cell_type.n_vertices`` (4 for tetrahedra). Field data is
    attached per point, per cell, or globally through ``TensorDict``
    containers, as in the rest of the library.

    Iterating a ``CellMesh`` yields ``cell_type`` objects in stored order.
    Every call to ``iter()`` starts a fresh traversal, so the sequence is
    restartable and stable for a given mesh.

    Cell meshes are built by the discretizer. There is no public mutation API;
    derived geometry (volumes, dihedral angles) is cached in ``cell_data``
    under the ``"_cache"`` key.

    Parameters
    ----------
    points : torch.Tensor
        Vertex coordinates with shape :math:`(N_p, 3)`. Must be floating-point.
    cells : torch.Tensor
        Connectivity with shape :math:`(N_c, V)`. Must be integer dtype.
    cell_type : type[Cell], optional
        Cell class used for iteration and identity. Defaults to
        :class:`Tetrahedron`.
    point_data, cell_data, global_data : TensorDict or dict, optional
        Field data. Dicts are converted to TensorDict.

    Raises
    ------
    ValueError
        If the tensor shapes do not match ``cell_type``.
    TypeError
        If ``cells`` has a floating-point dtype.

    Examples
    --------
    >>> import torch
    >>> points = torch.tensor([[0., 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
    >>> mesh = CellMesh(points=points, cells=torch.tensor([[0, 1, 2, 3]]))
    >>> len(mesh)
    1
    >>> [tet.volume for tet in mesh]
    [0.16666666666666666]
    """

    def __init__(
        self,
        points: torch.Tensor,
        cells: torch.Tensor,
        cell_type: type[Cell] = Tetrahedron,
        point_data: TensorDict | dict[str, torch.Tensor] | None = None,
        cell_data: TensorDict | dict[str, torch.Tensor] | None = None,
        global_data: TensorDict | dict[str, torch.Tensor] | None = None,
    ) -> None:
        ### Validate shapes and dtypes
        if points.ndim != 2 or points.shape[-1] != 3:
            raise ValueError(f"`points` must have shape (n_points, 3), but got {points.shape=}.")
        if not torch.is_floating_point(points):
            raise TypeError(f"`points` must be floating-point, but got {points.dtype=}.")
        if torch.is_floating_point(cells):
            raise TypeError(f"`cells` must have an integer dtype, but got {cells.dtype=}.")
        if cells.ndim != 2 or cells.shape[-1] != cell_type.n_vertices:
            raise ValueError(
                f"`cells` must have shape (n_cells, {cell_type.n_vertices}) for "
                f"{cell_type.__name__} cells, but got {cells.shape=}."
            )

        self.points = points
        self.cells = cells.to(torch.int64)
        self.cell_type = cell_type

        self.point_data = _as_tensordict(point_data, [self.n_points], points.device)
        self.cell_data = _as_tensordict(cell_data, [self.n_cells], points.device)
        self.global_data = _as_tensordict(global_data, [], points.device)

    @property
    def n_points(self) -> int:
        return self.points.shape[0]

    @property
    def n_cells(self) -> int:
        return self.cells.shape[0]

    def __len__(self) -> int:
        return self.n_cells

    def __iter__(self) -> Iterator[Cell]:
        points = [tuple(p) for p in self.points.tolist()]
        for cell in self.cells.tolist():
            yield self.cell_type(*(points[i] for i in cell))

    def __getitem__(self, index: int) -> Cell:
        cell = self.cells[index]
        if cell.ndim != 1:
            raise TypeError(f"CellMesh indexing takes a single integer, got {index=}.")
        return self.cell_type(*self.points[cell].tolist())

    def __contains__(self, cell: object) -> bool:
        if not isinstance(cell, self.cell_type):
            return False
        return any(cell == other for other in self)

    @property
    def cell_vertices(self) -> torch.Tensor:
        """Vertex coordinates per cell, shape ``(n_cells, V, 3)``."""
        return self.points[self.cells]

    @property
    def cell_volumes(self) -> torch.Tensor:
        """Unsigned cell volumes, shape ``(n_cells,)``. Cached."""
        self._require_tetrahedra("cell_volumes")
        return self._cached(
            "volumes", lambda: compute_signed_volumes(self.cell_vertices).abs()
        )

    @property
    def total_volume(self) -> float:
        """Sum of all cell volumes."""
        return self.cell_volumes.sum().item()

    @property
    def dihedral_angles(self) -> torch.Tensor:
        """Six dihedral angles per tetrahedron, shape ``(n_cells, 6)``. Cached."""
        self._require_tetrahedra("dihedral_angles")
        return self._cached(
            "dihedral_angles", lambda: compute_dihedral_angles(self.cell_vertices)
        )

    def boundary_faces(self) -> torch.Tensor:
        """Faces belonging to exactly one cell, as sorted vertex triples."""
        return get_boundary_faces(self)

    def _cached(self, name: str, compute) -> torch.Tensor:
        """Per-cell value stored under ``("_cache", name)`` in ``cell_data``.

        ``compute`` runs only on the first request for ``name``.
        """
        value = self.cell_data.get((_CACHE_KEY, name), None)
        if value is None:
            value = compute()
            if _CACHE_KEY not in self.cell_data.keys():
                self.cell_data[_CACHE_KEY] = TensorDict(
                    {}, batch_size=self.cell_data.batch_size, device=self.cell_data.device
                )
            self.cell_data[(_CACHE_KEY, name)] = value
        return value

    def _require_tetrahedra(self, name: str) -> None:
        if self.cell_type is not Tetrahedron:
            raise NotImplementedError(
                f"`{name}` is only implemented for Tetrahedron cells, "
                f"not {self.cell_type.__name__}."
            )

    def __repr__(self) -> str:
        def keys(data: TensorDict) -> list[str]:
            return sorted(k for k in data.keys() if k != _CACHE_KEY)

        return (
            f"CellMesh(n_points={self.n_points}, n_cells={self.n_cells}, "
            f"cell_type={self.cell_type.__name__}, "
            f"point_data={keys(self.point_data)}, cell_data={keys(self.cell_data)}, "
            f"global_data={keys(self.global_data)})"
        )


def _as_tensordict(
    data: TensorDict | dict[str, torch.Tensor] | None,
    batch_size: list[int],
    device: torch.device,
) -> TensorDict:
    if isinstance(data, TensorDict):
        data.batch_size = torch.Size(batch_size)
        return data
    return TensorDict(
        {} if data is None else dict(data),
        batch_size=torch.Size(batch_size),
        device=device,
    )
