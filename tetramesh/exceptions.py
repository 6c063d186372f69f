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

"""Error taxonomy for tetramesh.

Every failure a caller can act on derives from :class:`MeshError`:

- :class:`IndexingError` for out-of-range vertex, face, or normal access.
- :class:`FormatError` and :class:`MeshIOError` for the OBJ reader and writer.
- :class:`GeometryError` subclasses for input surfaces that cannot be
  discretized (degenerate, open, or inconsistently oriented).
- :class:`ConfigurationError` for invalid discretizer settings.
- :class:`QualityError` when strict quality mode rejects a mesh.

:class:`MeshInvariantError` is intentionally *not* a :class:`MeshError`. It
signals that the algorithm broke one of its own contracts (for example a
cavity retriangulation that produced no cells), so there is nothing a caller
can do to recover from it.

:class:`QualityWarning` is a record, not an exception. Discretization returns
a list of them alongside the mesh.
"""

from collections.abc import Sequence
from dataclasses import dataclass


class MeshError(Exception):
    """Base class for all recoverable tetramesh errors."""


class IndexingError(MeshError, IndexError):
    """A vertex, face, or normal index is out of range."""


class FormatError(MeshError, ValueError):
    """Malformed mesh text encountered while parsing a file."""


class MeshIOError(MeshError, OSError):
    """A mesh file could not be opened or read."""


class ConfigurationError(MeshError, ValueError):
    """A discretizer configuration value is invalid."""


class GeometryError(MeshError, ValueError):
    """Base class for input geometry that cannot be discretized."""


class DegenerateFaceError(GeometryError):
    """The first three vertices of a face are collinear (zero-length normal)."""


class DegenerateInputError(GeometryError):
    """The input surface is degenerate (coincident vertices, zero volume, ...)."""


class OpenSurfaceError(GeometryError):
    """The input surface has edges not shared by exactly two faces.

    Parameters
    ----------
    message : str
        Human-readable description.
    edges : Sequence[tuple[int, int]], optional
        The offending undirected edges, as sorted vertex index pairs.
    """

    def __init__(self, message: str, edges: Sequence[tuple[int, int]] = ()):
        super().__init__(message)
        self.edges = list(edges)


class InconsistentOrientationError(GeometryError):
    """Adjacent faces traverse a shared edge in the same direction, or the
    surface normals point inward.

    Parameters
    ----------
    message : str
        Human-readable description.
    edges : Sequence[tuple[int, int]], optional
        The directed edges that appear more than once.
    """

    def __init__(self, message: str, edges: Sequence[tuple[int, int]] = ()):
        super().__init__(message)
        self.edges = list(edges)


class BoundaryRecoveryError(GeometryError):
    """The surface could not be recovered within the Steiner point budget."""


@dataclass(frozen=True)
class QualityWarning:
    """A cell whose minimum dihedral angle stayed below the threshold.

    Attributes
    ----------
    cell_index : int
        Index of the offending cell in the returned :class:`CellMesh`.
    vertex_indices : tuple[int, int, int, int]
        Point indices of the cell in the returned mesh.
    min_dihedral_angle : float
        Smallest dihedral angle of the cell, in radians.
    threshold_angle : float
        The configured threshold, in radians.
    """

    cell_index: int
    vertex_indices: tuple[int, ...]
    min_dihedral_angle: float
    threshold_angle: float

    def __str__(self) -> str:
        return (
            f"cell {self.cell_index} {self.vertex_indices} has minimum dihedral "
            f"angle {self.min_dihedral_angle:.6g} rad < threshold "
            f"{self.threshold_angle:.6g} rad"
        )


class QualityError(MeshError):
    """Strict quality mode found cells below the dihedral angle threshold.

    Parameters
    ----------
    message : str
        Human-readable description.
    warnings : Sequence[QualityWarning]
        Every unresolved quality violation.
    """

    def __init__(self, message: str, warnings: Sequence[QualityWarning] = ()):
        super().__init__(message)
        self.warnings = list(warnings)


class MeshInvariantError(RuntimeError):
    """An internal invariant of the discretizer was violated.

    This indicates a bug rather than bad input and should not be caught by
    callers as part of normal control flow.
    """
