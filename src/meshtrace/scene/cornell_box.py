"""Cornell box demo scene.

A programmatic version of the classic Cornell box test scene, built entirely
from triangles so it exercises the same code paths as a loaded OBJ mesh:

- 5 walls forming an open box (left, right, back, floor, ceiling)
- Left wall: red diffuse
- Right wall: green diffuse
- Back, floor, ceiling: white diffuse
- A short and a tall block (axis-aligned boxes), the tall one slightly glossy
- An emissive light panel under the ceiling with a point light just below it

The box spans 0 to 555 on every axis. The camera sits outside the open front
at z = -800 with the identity orientation, which looks toward +z; with this
camera, screen-left is world +x, so the red wall is the x = 555 plane.

Example:
    >>> from meshtrace.scene.cornell_box import create_cornell_box_scene
    >>> scene = create_cornell_box_scene(256, 256)
    >>> len(scene.triangles)
    36
"""

from dataclasses import dataclass

from meshtrace.camera.pinhole import PinholeCamera
from meshtrace.lights.sources import PointLight
from meshtrace.materials.material import Material
from meshtrace.scene.manager import SceneManager
from meshtrace.scene.scene import Scene

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    Attributes:
        light_intensity: Scale applied to ``light_color`` for the point light.
        light_color: RGB color of the light (each component in [0, 1]).
        left_wall_color: RGB albedo of the left wall (red by default).
        right_wall_color: RGB albedo of the right wall (green by default).
        back_wall_color: RGB albedo of the back wall, floor and ceiling.
        ambient: Ambient radiance; also the color of rays that escape.

    Example:
        >>> params = CornellBoxParams(light_intensity=1.2, light_color=(1.0, 0.9, 0.8))
    """

    light_intensity: float = 0.9
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    left_wall_color: tuple[float, float, float] = (0.65, 0.05, 0.05)
    right_wall_color: tuple[float, float, float] = (0.12, 0.45, 0.15)
    back_wall_color: tuple[float, float, float] = (0.73, 0.73, 0.73)
    ambient: tuple[float, float, float] = (0.05, 0.05, 0.05)


# =============================================================================
# Cornell Box Constants
# =============================================================================

BOX_SIZE = 555.0

CAMERA_POSITION = (BOX_SIZE / 2.0, BOX_SIZE / 2.0, -800.0)

# Classic light panel footprint is about 130 x 105 units
LIGHT_PANEL_WIDTH = 130.0
LIGHT_PANEL_DEPTH = 105.0

SHORT_BLOCK = ((130.0, 0.0, 65.0), (295.0, 165.0, 230.0))
TALL_BLOCK = ((265.0, 0.0, 295.0), (430.0, 330.0, 460.0))


# =============================================================================
# Cornell Box Factory
# =============================================================================


def populate_cornell_box(
    manager: SceneManager,
    box_size: float = BOX_SIZE,
    params: CornellBoxParams | None = None,
) -> None:
    """Add the Cornell box materials, geometry and light to ``manager``.

    Every wall faces into the box; the renderer culls back faces, so the
    outside of the box is invisible.

    Args:
        manager: Scene builder to populate.
        box_size: Edge length of the box.
        params: Colors and light settings; defaults to ``CornellBoxParams()``.
    """
    if params is None:
        params = CornellBoxParams()
    s = box_size

    # The first material registered is the scene's fallback material
    white = manager.add_material(Material(name="white", diffuse=params.back_wall_color))
    red = manager.add_material(Material(name="red", diffuse=params.left_wall_color))
    green = manager.add_material(Material(name="green", diffuse=params.right_wall_color))
    glossy = manager.add_material(
        Material(
            name="glossy",
            diffuse=params.back_wall_color,
            specular=(0.3, 0.3, 0.3),
            shininess=32.0,
        )
    )
    panel = manager.add_material(
        Material(name="light", diffuse=(0.0, 0.0, 0.0), emission=params.light_color)
    )

    # =========================================================================
    # Walls
    # =========================================================================

    manager.add_quad((0.0, 0.0, 0.0), (0.0, 0.0, s), (s, 0.0, 0.0), white)  # floor, +y
    manager.add_quad((0.0, s, 0.0), (s, 0.0, 0.0), (0.0, 0.0, s), white)  # ceiling, -y
    manager.add_quad((0.0, 0.0, s), (0.0, s, 0.0), (s, 0.0, 0.0), white)  # back, -z
    manager.add_quad((s, 0.0, 0.0), (0.0, 0.0, s), (0.0, s, 0.0), red)  # x = s, -x
    manager.add_quad((0.0, 0.0, 0.0), (0.0, s, 0.0), (0.0, 0.0, s), green)  # x = 0, +x

    # =========================================================================
    # Blocks
    # =========================================================================

    scale = s / BOX_SIZE
    for (lo, hi), material in ((SHORT_BLOCK, white), (TALL_BLOCK, glossy)):
        manager.add_box(
            tuple(c * scale for c in lo),
            tuple(c * scale for c in hi),
            material,
        )

    # =========================================================================
    # Light
    # =========================================================================

    # Panel sits just below the ceiling, facing down
    panel_y = s - 1.0
    panel_w = LIGHT_PANEL_WIDTH * scale
    panel_d = LIGHT_PANEL_DEPTH * scale
    x0 = (s - panel_w) / 2.0
    z0 = (s - panel_d) / 2.0
    manager.add_quad(
        (x0, panel_y, z0),
        (panel_w, 0.0, 0.0),
        (0.0, 0.0, panel_d),
        panel,
    )

    # Point light below the panel so the panel never shadows it
    intensity = params.light_intensity
    manager.add_light(
        PointLight(
            position=(s / 2.0, s - 5.0, s / 2.0),
            emission=tuple(c * intensity for c in params.light_color),
        )
    )
    manager.set_ambient(params.ambient)


def create_cornell_box_scene(
    width: int = 512,
    height: int = 512,
    params: CornellBoxParams | None = None,
) -> Scene:
    """Create the Cornell box scene with a camera for a ``width`` x ``height`` image.

    Args:
        width: Image width; the camera viewport.
        height: Image height; the camera viewport.
        params: Optional colors and light settings.

    Returns:
        The built scene.
    """
    manager = SceneManager()
    populate_cornell_box(manager, BOX_SIZE, params)
    manager.set_camera(
        PinholeCamera.from_axis_angle(CAMERA_POSITION, (0.0, 1.0, 0.0), 0.0, width, height)
    )
    return manager.build()
