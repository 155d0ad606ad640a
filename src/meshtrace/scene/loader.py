"""Scene, mesh and material loading.

Three file formats feed a ``SceneManager``:

Wavefront OBJ (``load_model``)
    ``v``, ``vn``, ``vt``, ``f`` (polygons are fan-triangulated; ``v``,
    ``v/t``, ``v//n`` and ``v/t/n`` references; negative indices count back
    from the latest element), ``usemtl`` and ``mtllib``. Other statements
    (``o``, ``g``, ``s``, ``l``, ``p``) are ignored. Faces without normals
    get the flat face normal. Faces before any ``usemtl`` use the first
    material of the library, or the built-in default material when the mesh
    has no library.

Wavefront MTL (``load_mtl``)
    ``newmtl``, ``Ka``, ``Kd``, ``Ks``, ``Ke``, ``Ns``, ``map_Kd`` and
    ``map_d``. Texture paths are relative to the MTL file.

Scene JSON (``load_scene``)::

    {
      "camera": {"position": [0, 1, -5], "rot_axis": [0, 1, 0], "rot_angle": 0},
      "models": ["models/room.obj"],
      "lights": [
        {"type": "AmbientLight", "emission": [0.1, 0.1, 0.1]},
        {"type": "DirLight", "direction": [-0.25, -0.5, 0], "emission": [1, 1, 1]},
        {"type": "PointLight", "position": [0, 3, 0], "emission": [5, 5, 5],
         "c": 1.0, "l": 0.1, "q": 0.01}
      ]
    }

``rot_angle`` is in degrees. Model paths are relative to the JSON file.

Any missing or malformed input raises ``SceneLoadError`` before a scene is
built, so a partially loaded scene is never rendered.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any

from meshtrace.camera.pinhole import PinholeCamera
from meshtrace.core.ray import as_vec3, cross, length, normalize
from meshtrace.errors import SceneLoadError
from meshtrace.geometry.triangle import Triangle, Vertex
from meshtrace.lights.sources import DirectionalLight, PointLight
from meshtrace.materials.material import DEFAULT_MATERIAL_NAME, Material
from meshtrace.materials.texture import TextureKind, load_texture
from meshtrace.scene.manager import SceneManager
from meshtrace.scene.scene import Scene

logger = logging.getLogger(__name__)

_ZERO3 = (0.0, 0.0, 0.0)
_ZERO2 = (0.0, 0.0)


def _read_text(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SceneLoadError(f"Failed to read {what} '{path}': {e}") from e


def _statements(text: str):
    """Yield ``(line_number, keyword, args)`` for non-empty, non-comment lines."""
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if line:
            keyword, *args = line.split()
            yield lineno, keyword, args


def _floats(args: list[str], count: int) -> tuple[float, ...]:
    if len(args) < count:
        raise ValueError(f"expected {count} numbers, got {len(args)}")
    return tuple(float(a) for a in args[:count])


def _color(args: list[str]) -> tuple[float, float, float]:
    # "Kd 0.5" is shorthand for a gray "Kd 0.5 0.5 0.5"
    if len(args) == 1:
        value = float(args[0])
        return value, value, value
    return _floats(args, 3)


# =============================================================================
# MTL
# =============================================================================


def load_mtl(path: str | Path) -> list[Material]:
    """Parse a material library.

    Args:
        path: MTL file path.

    Returns:
        Materials in file order.

    Raises:
        SceneLoadError: If the file, a value or a referenced texture is bad.
    """
    path = Path(path)
    text = _read_text(path, "material library")
    entries: list[dict[str, Any]] = []

    for lineno, keyword, args in _statements(text):
        try:
            if keyword == "newmtl":
                entries.append({"name": " ".join(args) or f"material_{len(entries)}"})
                continue
            if not entries:
                if keyword in ("Ka", "Kd", "Ks", "Ke", "Ns", "map_Kd", "map_d"):
                    raise ValueError(f"'{keyword}' before any newmtl")
                continue
            entry = entries[-1]
            if keyword == "Ka":
                entry["ambient"] = _color(args)
            elif keyword == "Kd":
                entry["diffuse"] = _color(args)
            elif keyword == "Ks":
                entry["specular"] = _color(args)
            elif keyword == "Ke":
                entry["emission"] = _color(args)
            elif keyword == "Ns":
                entry["shininess"] = float(args[0])
            elif keyword == "map_Kd":
                entry["map_Kd"] = args[-1]
            elif keyword == "map_d":
                entry["map_d"] = args[-1]
        except (ValueError, IndexError) as e:
            raise SceneLoadError(f"{path}:{lineno}: invalid '{keyword}' statement: {e}") from e

    materials = []
    for entry in entries:
        diffuse_texture = alpha_texture = None
        if "map_Kd" in entry:
            diffuse_texture = load_texture(path.parent / entry.pop("map_Kd"), TextureKind.DIFFUSE)
        if "map_d" in entry:
            alpha_texture = load_texture(path.parent / entry.pop("map_d"), TextureKind.ALPHA)
        if diffuse_texture is not None:
            entry["diffuse_texture"] = diffuse_texture
        if alpha_texture is not None:
            entry["alpha_texture"] = alpha_texture
        try:
            materials.append(Material(**entry))
        except ValueError as e:
            raise SceneLoadError(f"{path}: invalid material '{entry['name']}': {e}") from e
        logger.debug(
            "  material '%s': diffuse_texture=%s alpha_texture=%s",
            entry["name"],
            diffuse_texture is not None,
            alpha_texture is not None,
        )
    return materials


# =============================================================================
# OBJ
# =============================================================================


def _resolve_index(token: str, count: int) -> int:
    index = int(token)
    resolved = index - 1 if index > 0 else count + index
    if index == 0 or not 0 <= resolved < count:
        raise ValueError(f"index {index} out of range (have {count})")
    return resolved


def load_model(path: str | Path, manager: SceneManager) -> int:
    """Load an OBJ mesh (and its material libraries) into ``manager``.

    Args:
        path: OBJ file path.
        manager: Scene builder receiving materials and triangles.

    Returns:
        Number of triangles kept (degenerate triangles are dropped).

    Raises:
        SceneLoadError: If the mesh or one of its libraries is invalid.
    """
    path = Path(path)
    text = _read_text(path, "model")
    logger.info("Loading model '%s'", path)

    positions: list[tuple[float, ...]] = []
    normals: list[tuple[float, ...]] = []
    texcoords: list[tuple[float, ...]] = []
    library: list[Material] = []
    faces: list[tuple[str | None, list[Vertex], bool]] = []
    current: str | None = None

    for lineno, keyword, args in _statements(text):
        try:
            if keyword == "v":
                positions.append(_floats(args, 3))
            elif keyword == "vn":
                normals.append(_floats(args, 3))
            elif keyword == "vt":
                # 1D and 3D texture coordinates are padded/truncated to 2D
                texcoords.append(_floats(args + ["0"], 2))
            elif keyword == "f":
                if len(args) < 3:
                    raise ValueError(f"face needs at least 3 vertices, got {len(args)}")
                corners = []
                has_normals = True
                for ref in args:
                    parts = ref.split("/")
                    pos = positions[_resolve_index(parts[0], len(positions))]
                    uv = _ZERO2
                    if len(parts) > 1 and parts[1]:
                        uv = texcoords[_resolve_index(parts[1], len(texcoords))]
                    nrm = _ZERO3
                    if len(parts) > 2 and parts[2]:
                        nrm = normals[_resolve_index(parts[2], len(normals))]
                    else:
                        has_normals = False
                    corners.append(Vertex(position=pos, normal=nrm, uv=uv))
                faces.append((current, corners, has_normals))
            elif keyword == "usemtl":
                current = " ".join(args)
            elif keyword == "mtllib":
                for name in args:
                    library.extend(load_mtl(path.parent / name))
        except (ValueError, IndexError) as e:
            raise SceneLoadError(f"{path}:{lineno}: invalid '{keyword}' statement: {e}") from e

    for material in library:
        manager.add_material(material)
    fallback = library[0].name if library else DEFAULT_MATERIAL_NAME
    if not library and faces:
        manager.add_material(Material(name=DEFAULT_MATERIAL_NAME))

    kept = 0
    total = 0
    for material_name, corners, has_normals in faces:
        name = material_name or fallback
        # Fan triangulation
        for i in range(1, len(corners) - 1):
            verts = [corners[0], corners[i], corners[i + 1]]
            if not has_normals or all(length(v.normal) == 0.0 for v in verts):
                verts = _with_flat_normal(verts)
            total += 1
            if manager.add_triangle(Triangle(tuple(verts), name)):
                kept += 1

    logger.debug(
        "  '%s': %d vertices, %d faces, %d triangles (%d degenerate), %d materials",
        path.name,
        len(positions),
        len(faces),
        kept,
        total - kept,
        len(library),
    )
    return kept


def _with_flat_normal(verts: list[Vertex]) -> list[Vertex]:
    a, b, c = (v.position for v in verts)
    normal = normalize(cross(b - a, c - a))
    return [Vertex(position=v.position, normal=normal, uv=v.uv) for v in verts]


# =============================================================================
# Scene JSON
# =============================================================================


def _field(obj: dict[str, Any], key: str, context: str) -> Any:
    if not isinstance(obj, dict) or key not in obj:
        raise SceneLoadError(f"{context}: missing required field '{key}'")
    return obj[key]


def _vector_field(obj: dict[str, Any], key: str, context: str):
    try:
        return as_vec3(_field(obj, key, context))
    except (TypeError, ValueError) as e:
        raise SceneLoadError(f"{context}: field '{key}' must be a 3-vector: {e}") from e


def _number_field(obj: dict[str, Any], key: str, context: str) -> float:
    value = _field(obj, key, context)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneLoadError(f"{context}: field '{key}' must be a number")
    return float(value)


def parse_camera(doc: dict[str, Any], width: int, height: int) -> PinholeCamera:
    """Build the camera from the ``camera`` section of a scene document."""
    camera = _field(doc, "camera", "scene")
    position = _vector_field(camera, "position", "camera")
    axis = _vector_field(camera, "rot_axis", "camera")
    angle = math.radians(_number_field(camera, "rot_angle", "camera"))
    return PinholeCamera.from_axis_angle(position, axis, angle, width, height)


def add_light_from_dict(light: dict[str, Any], manager: SceneManager) -> None:
    """Add one light description to ``manager``.

    ``AmbientLight`` sets the ambient term; unknown types are skipped with a
    warning.
    """
    light_type = _field(light, "type", "light")
    context = f"light '{light_type}'"
    logger.debug("Loading light of type '%s'", light_type)
    try:
        if light_type == "AmbientLight":
            manager.set_ambient(_vector_field(light, "emission", context))
        elif light_type == "DirLight":
            manager.add_light(
                DirectionalLight(
                    direction=_vector_field(light, "direction", context),
                    emission=_vector_field(light, "emission", context),
                )
            )
        elif light_type == "PointLight":
            manager.add_light(
                PointLight(
                    position=_vector_field(light, "position", context),
                    emission=_vector_field(light, "emission", context),
                    c=_number_field(light, "c", context),
                    l=_number_field(light, "l", context),
                    q=_number_field(light, "q", context),
                )
            )
        else:
            logger.warning("Skipping light of unknown type '%s'", light_type)
    except ValueError as e:
        raise SceneLoadError(f"{context}: {e}") from e


def load_scene(path: str | Path, width: int, height: int) -> Scene:
    """Load a scene description and everything it references.

    Args:
        path: Scene JSON file.
        width: Output image width (camera viewport).
        height: Output image height (camera viewport).

    Returns:
        The built, immutable scene.

    Raises:
        SceneLoadError: If any part of the scene cannot be loaded.
    """
    path = Path(path)
    try:
        doc = json.loads(_read_text(path, "scene"))
    except json.JSONDecodeError as e:
        raise SceneLoadError(f"Failed to parse scene '{path}': {e}") from e
    if not isinstance(doc, dict):
        raise SceneLoadError(f"Scene '{path}' must contain a JSON object")

    manager = SceneManager()
    try:
        manager.set_camera(parse_camera(doc, width, height))
    except ValueError as e:
        raise SceneLoadError(f"camera: {e}") from e

    models = doc.get("models", [])
    if not isinstance(models, list) or not all(isinstance(m, str) for m in models):
        raise SceneLoadError(f"Scene '{path}': 'models' must be a list of file paths")
    for model in models:
        load_model(path.parent / model, manager)

    lights = doc.get("lights", [])
    if not isinstance(lights, list):
        raise SceneLoadError(f"Scene '{path}': 'lights' must be a list")
    for light in lights:
        add_light_from_dict(light, manager)

    return manager.build()
