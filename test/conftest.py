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

"""Pytest configuration and shared fixtures for tetramesh tests.

All fixtures defined here are automatically available to all test files
without explicit imports.
"""

import pytest
import torch

from tetramesh.primitives import cube, l_prism, octahedron

### Pytest Hooks ###


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "cuda: mark test as requiring CUDA (skipped if unavailable)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow-running (for optional exclusion)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests marked with 'cuda' if CUDA is not available."""
    if torch.cuda.is_available():
        return

    skip_cuda = pytest.mark.skip(reason="CUDA not available")
    for item in items:
        if "cuda" in item.keywords:
            item.add_marker(skip_cuda)


### Fixtures ###


@pytest.fixture(
    params=[
        "cpu",
        pytest.param("cuda", marks=pytest.mark.cuda),
    ]
)
def device(request):
    """Parametrize tests over all available devices (CPU, CUDA)."""
    return request.param


@pytest.fixture
def unit_cube():
    """Unit cube surface, 8 vertices and 12 triangles."""
    return cube.load()


@pytest.fixture
def unit_octahedron():
    """Octahedron with vertices on the unit axes."""
    return octahedron.load()


@pytest.fixture
def l_shaped_prism():
    """Non-convex L-shaped prism of volume 3."""
    return l_prism.load()


@pytest.fixture
def unit_tetrahedron_points():
    """Corners of the right tetrahedron with volume 1/6, positively ordered."""
    return torch.tensor(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
        dtype=torch.float64,
    )
