# Import directive modules so decorators run and register classes.
from . import checkpoint, command, ignore, pause  # noqa: F401
from . import file, screenshot, server  # noqa: F401
from ..registry import ensure_complete

ensure_complete()
