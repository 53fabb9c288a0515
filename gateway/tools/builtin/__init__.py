"""Auto-import builtin tool modules to trigger @register_tool decorators."""
from . import clock
from . import weather
from . import shell
from . import files
from . import lint
from . import search
