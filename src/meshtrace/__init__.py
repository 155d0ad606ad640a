"""CPU Whitted-style ray tracer for triangle meshes.

The renderer shoots one primary ray per pixel from a pinhole camera, finds the
nearest triangle through a bounding volume hierarchy, and evaluates direct
lighting with hard shadows, diffuse and alpha textures, and cutout
transparency. Screen tiles are rendered in parallel.

Subpackages:
    core: Vector helpers, the tracing integrator and the tile renderer
    geometry: Bounding boxes, triangles and the BVH
    materials: Materials, BRDF terms and textures
    lights: Directional and point lights
    camera: Quaternion transforms and the pinhole camera
    scene: Scene container, builder, ray queries and file loaders
    preview: Tone mapping, PNG export and Matplotlib preview
"""

__version__ = "0.1.0"
