"""
Pagesmith - a small static site generator.

Pagesmith walks a source tree, runs every file through an external markup
filter, wraps the result in a shared header and footer, and can add an
archive table, a news digest and an Atom feed built from all pages.
"""

__version__ = "1.0.0"

from .context import BuildContext
from .core import PageSmith
from .errors import BuildError, ConfigurationError, PageSmithError, PipeError
from .page import Page, PageProcessor

__all__ = [
    'BuildContext',
    'BuildError',
    'ConfigurationError',
    'Page',
    'PageProcessor',
    'PageSmith',
    'PageSmithError',
    'PipeError',
]
