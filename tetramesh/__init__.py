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

"""Tetrahedral discretization of closed boundary surface meshes.

The main entry point is :func:`discretize`, which turns a closed, outward
oriented :class:`PolygonMesh` or :class:`TriangleMesh` into a conforming
tetrahedral :class:`CellMesh`.
"""

from tetramesh.discretization import (
    Discretizer,
    DiscretizerConfig,
    TetrahedralDiscretizer,
    discretize,
)
from tetramesh.exceptions import (
    BoundaryRecoveryError,
    ConfigurationError,
    DegenerateFaceError,
    DegenerateInputError,
    FormatError,
    GeometryError,
    InconsistentOrientationError,
    IndexingError,
    MeshError,
    MeshInvariantError,
    MeshIOError,
    OpenSurfaceError,
    QualityError,
    QualityWarning,
)
from tetramesh.io import load_obj, write_obj
from tetramesh.surface import MutablePolyMesh, PolygonMesh, PolyMesh, TriangleMesh
from tetramesh.volume import Cell, CellMesh, Tetrahedron

__version__ = "0.1.0a0"
