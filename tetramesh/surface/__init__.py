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

"""Boundary (surface) meshes and their topology checks."""

from tetramesh.surface._topology import (
    check_closed,
    check_consistent_orientation,
    compute_signed_volume,
    count_edge_faces,
    extract_directed_edges,
    find_open_edges,
    is_closed,
)
from tetramesh.surface.polymesh import (
    MutablePolyMesh,
    PolygonMesh,
    PolyMesh,
    TriangleMesh,
)
