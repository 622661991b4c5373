from . import directive  # noqa: F401
