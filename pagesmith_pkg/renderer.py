"""
Header and footer rendering.

Templates are plain text files holding ``${name}`` placeholders. Each
placeholder is replaced everywhere it occurs by running the template
through sed, one global substitution per placeholder.
"""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from .context import BuildContext
from .errors import BuildError
from .page import Page, format_iso, format_readable
from .pipe import ArgumentBuilder, read_pipe

SED_DELIMITER = '|'
_PATTERN_SPECIALS = set('\\.*[]^$' + SED_DELIMITER)
_REPLACEMENT_SPECIALS = set('\\&' + SED_DELIMITER)


def escape_sed_pattern(text: str) -> str:
    """Escape text so a basic sed regex matches it literally."""
    return ''.join('\\' + char if char in _PATTERN_SPECIALS else char for char in text)


def escape_sed_replacement(text: str) -> str:
    """Escape text so sed inserts it literally as a replacement."""
    escaped = []
    for char in text:
        if char in _REPLACEMENT_SPECIALS:
            escaped.append('\\' + char)
        elif char == '\n':
            escaped.append('\\\n')
        else:
            escaped.append(char)
    return ''.join(escaped)


def substitution(name: str, value: str) -> str:
    """A sed expression replacing every ``${name}`` with value."""
    pattern = escape_sed_pattern('${' + name + '}')
    replacement = escape_sed_replacement(value)
    return f's{SED_DELIMITER}{pattern}{SED_DELIMITER}{replacement}{SED_DELIMITER}g'


@dataclass(frozen=True)
class TemplateValues:
    """The values of the eight recognised placeholders."""

    base_url: str
    year: str
    created: str
    created_readable: str
    modified: str
    modified_readable: str
    owner: str
    title: str

    def placeholders(self) -> Dict[str, str]:
        return {
            'base_url': self.base_url,
            'year': self.year,
            'created': self.created,
            'created_readable': self.created_readable,
            'modified': self.modified,
            'modified_readable': self.modified_readable,
            'owner': self.owner,
            'title': self.title,
        }


class TemplateRenderer:
    def __init__(self, context: BuildContext, sed: str = 'sed'):
        self.context = context
        self.sed = sed

    def _owner(self, name: str) -> str:
        return '' if self.context.hide_user else name

    def values_for_page(self, page: Page, now: Optional[datetime] = None) -> TemplateValues:
        now = now or datetime.now(timezone.utc)
        return TemplateValues(
            base_url=self.context.base_url,
            year=str(now.year),
            created=page.created_iso,
            created_readable=page.created_readable,
            modified=page.modified_iso,
            modified_readable=page.modified_readable,
            owner=self._owner(page.user),
            title=page.title,
        )

    def values_for_aggregate(self, title: str, now: Optional[datetime] = None) -> TemplateValues:
        """Values for generated pages: dated now and owned by the site owner."""
        now = now or datetime.now(timezone.utc)
        iso = format_iso(now)
        readable = format_readable(now)
        return TemplateValues(
            base_url=self.context.base_url,
            year=str(now.year),
            created=iso,
            created_readable=readable,
            modified=iso,
            modified_readable=readable,
            owner=self._owner(self.context.owner),
            title=title,
        )

    def sed_arguments(self, template_path: str, values: TemplateValues):
        builder = ArgumentBuilder(self.sed)
        for name, value in values.placeholders().items():
            builder.add('-e', substitution(name, value))
        return builder.add(template_path).build()

    def render(self, template_path: str, values: TemplateValues) -> bytes:
        """
        Render one template file.

        Raises:
            BuildError: If the template file does not exist
            PipeError: If sed fails
        """
        if not os.path.isfile(template_path):
            raise BuildError(f"Template not found: {template_path}", path=template_path)
        return read_pipe(self.sed_arguments(template_path, values))

    def render_pair(self, values: TemplateValues) -> Tuple[bytes, bytes]:
        """Render the configured header and footer with the same values."""
        header = self.render(self.context.header_template, values)
        footer = self.render(self.context.footer_template, values)
        return header, footer
