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

"""Boundary detection and facet extraction for cell meshes.

This module provides:
1. Facet extraction: faces and edges of tetrahedra, edges of triangles
2. Boundary detection: faces, cells, and vertices on the mesh boundary
"""

from tetramesh.boundaries._detection import (
    get_boundary_cells,
    get_boundary_faces,
    get_boundary_vertices,
    get_overshared_faces,
)
from tetramesh.boundaries._facet_extraction import (
    categorize_facets_by_count,
    extract_candidate_facets,
)
