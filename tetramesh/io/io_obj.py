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

"""Wavefront OBJ reader and writer for boundary meshes.

Only geometry is exchanged: ``v`` records become vertices and ``f`` records
become faces (1-based indices; for ``i/t/n`` references only ``i`` is used).
Texture, normal, grouping and material records are skipped.
"""

import logging
import math
import os
from pathlib import Path

from tetramesh.exceptions import FormatError, IndexingError, MeshIOError
from tetramesh.surface.polymesh import PolygonMesh, PolyMesh

logger = logging.getLogger(__name__)

# Records that carry no geometry we keep.
_IGNORED_RECORDS = frozenset(
    {"vt", "vn", "vp", "g", "o", "s", "usemtl", "mtllib", "l"}
)


def load_obj(path: str | os.PathLike) -> PolygonMesh:
    """Read an OBJ file into a :class:`PolygonMesh`.

    Parameters
    ----------
    path : str or os.PathLike
        File to read.

    Returns
    -------
    PolygonMesh
        Vertices in file order and one face per ``f`` record, with normals
        computed from the face winding.

    Raises
    ------
    MeshIOError
        If the file cannot be opened or read.
    FormatError
        If a line is not a recognized record or a value does not parse.
    IndexingError
        If a face references a vertex that has not been defined.
    DegenerateFaceError
        If a face is degenerate (its first three vertices are collinear).
    """
    path = Path(path)
    mesh = PolygonMesh()
    try:
        with path.open("r", encoding="utf-8") as f:
            try:
                for line in f:
                    _parse_line(mesh, line)
            except (OSError, UnicodeDecodeError) as e:
                raise MeshIOError("Could not read next line.") from e
    except MeshIOError:
        raise
    except FileNotFoundError as e:
        raise MeshIOError("File not found.") from e
    except PermissionError as e:
        raise MeshIOError("Insufficient permissions.") from e
    except OSError as e:
        raise MeshIOError("File failed to open.") from e

    logger.debug(f"Loaded {mesh.n_vertices} vertices and {mesh.n_faces} faces from {path}")
    return mesh


def _parse_line(mesh: PolygonMesh, line: str) -> None:
    tokens = line.split()
    if not tokens or tokens[0].startswith("#"):
        return

    record, values = tokens[0], tokens[1:]
    if record == "v":
        mesh.add_vertex(_parse_vertex(values))
    elif record == "f":
        mesh.add_face(_parse_face(values, mesh.n_vertices))
    elif record not in _IGNORED_RECORDS:
        raise FormatError("Invalid file line.")


def _parse_vertex(values: list[str]) -> tuple[float, float, float]:
    coordinates = []
    for value in values[:3]:
        try:
            coordinate = float(value)
        except ValueError as e:
            raise FormatError("Failed to parse float.") from e
        if not math.isfinite(coordinate):
            raise FormatError("Failed to parse float.")
        coordinates.append(coordinate)
    if len(coordinates) < 3:
        raise FormatError("Unable to process string.")
    return tuple(coordinates)


def _parse_face(values: list[str], n_vertices: int) -> tuple[int, ...]:
    face = []
    for value in values:
        try:
            index = int(value.split("/")[0])
        except ValueError as e:
            raise FormatError("Failed to parse integer.") from e
        if index < 0:
            raise FormatError("Failed to parse integer.")
        # OBJ indices are 1-based
        index -= 1
        if not 0 <= index < n_vertices:
            raise IndexingError("Vertex not contained in mesh.")
        face.append(index)
    if len(face) < 3:
        raise FormatError("Face does not have enough vertices.")
    return tuple(face)


def write_obj(mesh: PolyMesh, path: str | os.PathLike) -> int:
    """Write the vertices and faces of ``mesh`` to an OBJ file.

    Parameters
    ----------
    mesh : PolyMesh
        Boundary mesh to write. Normals are not written.
    path : str or os.PathLike
        Destination, overwritten if it exists.

    Returns
    -------
    int
        Number of bytes written.

    Raises
    ------
    MeshIOError
        If the file cannot be created or written.
    """
    lines = [
        f"v {x} {y} {z}"
        for x, y, z in (mesh.get_vertex(i) for i in range(mesh.n_vertices))
    ]
    lines += ["f " + " ".join(str(i + 1) for i in face) for face in mesh.iter_faces()]

    path = Path(path)
    try:
        with path.open("w", encoding="utf-8", newline="\n") as f:
            for line in lines:
                f.write(line + "\n")
    except FileNotFoundError as e:
        raise MeshIOError("File not found.") from e
    except PermissionError as e:
        raise MeshIOError("Insufficient permissions.") from e
    except OSError as e:
        raise MeshIOError("File failed to open.") from e

    n_bytes = sum(len(line.encode("utf-8")) + 1 for line in lines)
    logger.debug(f"Wrote {mesh.n_vertices} vertices and {mesh.n_faces} faces to {path}")
    return n_bytes
