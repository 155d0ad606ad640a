"""Exception types raised by meshtrace."""


class MeshtraceError(Exception):
    """Base class for meshtrace errors."""


class SceneLoadError(MeshtraceError):
    """A scene, mesh, material or texture could not be loaded.

    Raised before rendering starts; a partially loaded scene is never
    rendered.
    """
