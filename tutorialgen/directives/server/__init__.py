from . import start, stop  # noqa: F401
