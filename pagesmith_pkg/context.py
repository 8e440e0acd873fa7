"""Site-wide build settings shared by every stage of a build."""

import getpass
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError

NEWS_MODES = (None, 'page', 'home')


def default_owner() -> str:
    """Login name of the user running the build."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return 'NULL'


@dataclass(frozen=True)
class BuildContext:
    """Immutable settings for one build, constructed once from parsed options."""

    source_dir: str = 'src'
    output_dir: str = 'build'
    base_url: str = ''
    parser: str = 'cat'
    feed_title: Optional[str] = None
    hide_user: bool = False
    owner: str = field(default_factory=default_owner)
    header_template: str = 'header.html'
    footer_template: str = 'footer.html'
    archive: bool = False
    feed: bool = False
    news: Optional[str] = None

    def __post_init__(self):
        if self.news not in NEWS_MODES:
            raise ConfigurationError(f"Unknown news mode {self.news!r}, expected 'page' or 'home'")
        if not self.parser or not self.parser.strip():
            raise ConfigurationError("No markup filter command configured")
        try:
            shlex.split(self.parser)
        except ValueError as e:
            raise ConfigurationError(f"Invalid markup filter command {self.parser!r}: {e}") from e

    @property
    def parser_args(self) -> List[str]:
        """The markup filter command split into program and arguments."""
        return shlex.split(self.parser)

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> 'BuildContext':
        """Build a context from a merged settings dictionary."""
        news = settings.get('news')
        if news is False:
            news = None
        for key in ('archive', 'feed', 'hide_user'):
            value = settings.get(key)
            if value is not None and not isinstance(value, bool):
                raise ConfigurationError(f"Setting '{key}' must be true or false, got {value!r}")
        owner = settings.get('owner') or default_owner()
        return cls(
            source_dir=settings.get('source') or 'src',
            output_dir=settings.get('output') or 'build',
            base_url=settings.get('base_url') or '',
            parser=settings.get('parser') or 'cat',
            feed_title=settings.get('feed_title'),
            hide_user=bool(settings.get('hide_user')),
            owner=owner,
            header_template=settings.get('header') or 'header.html',
            footer_template=settings.get('footer') or 'footer.html',
            archive=bool(settings.get('archive')),
            feed=bool(settings.get('feed')),
            news=news,
        )
