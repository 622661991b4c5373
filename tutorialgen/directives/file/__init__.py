# Import modules so decorators run and register the file directives.
from . import copy, create, patch, show  # noqa: F401
