"""
Pages and the metadata that goes with them.

A page is created once per source file: its title comes from the file's
path, its body from the markup filter, its modification date from the file
itself and its creation date from a ``.date`` marker file kept beside the
source. The marker is a small key-value store keyed by source path whose
only value is the marker's own modification time; its content is never
read. Keeping it this way lets existing site trees rebuild with the
creation dates they were first built with.
"""

import logging
import os
import pwd
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .errors import BuildError
from .pipe import ArgumentBuilder, read_pipe

ISO_FORMAT = '%Y-%m-%dT%H:%M:%SZ'
READABLE_FORMAT = '%Y-%m-%d %H:%M UTC'
MARKER_SUFFIX = '.date'
UNKNOWN_USER = 'NULL'
HOME_TITLE = 'Home'


def format_iso(moment: datetime) -> str:
    return moment.strftime(ISO_FORMAT)


def format_readable(moment: datetime) -> str:
    return moment.strftime(READABLE_FORMAT)


def utc_from_timestamp(timestamp: float) -> datetime:
    """Whole-second UTC datetime for a filesystem timestamp."""
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc)


def is_index_name(filename: str) -> bool:
    return filename == 'index' or filename.startswith('index.')


def derive_title(relative_path: str) -> str:
    """
    Derive a human-readable title from a path relative to the source root.

    The root index page is "Home", any other index page takes its
    directory's name, everything else is the file name without its last
    extension. Underscores and dashes become spaces except in "Home".
    """
    parts = [part for part in relative_path.replace(os.sep, '/').split('/') if part not in ('', '.')]
    if not parts:
        raise ValueError(f"Cannot derive a title from {relative_path!r}")

    filename = parts[-1]
    if is_index_name(filename):
        if len(parts) == 1:
            return HOME_TITLE
        title = parts[-2]
    elif '.' in filename:
        title = filename.rsplit('.', 1)[0]
    else:
        title = filename

    return title.replace('_', ' ').replace('-', ' ')


@dataclass
class Page:
    """One generated HTML document and the metadata of its source file."""

    source_path: str
    title: str
    body: bytes
    created: datetime
    modified: datetime
    user: str
    output_path: str = ''

    @property
    def created_iso(self) -> str:
        return format_iso(self.created)

    @property
    def created_readable(self) -> str:
        return format_readable(self.created)

    @property
    def modified_iso(self) -> str:
        return format_iso(self.modified)

    @property
    def modified_readable(self) -> str:
        return format_readable(self.modified)

    @property
    def body_length(self) -> int:
        return len(self.body)

    @property
    def body_text(self) -> str:
        """The body decoded for embedding in aggregate documents."""
        return self.body.decode('utf-8', errors='replace')


class PageProcessor:
    """Resolve the metadata and body of single source files."""

    def __init__(self, source_dir: str, parser_args: Sequence[str]):
        self.source_dir = source_dir
        self.parser_args = list(parser_args)
        self.logger = logging.getLogger('PageSmith')

    @staticmethod
    def marker_path(source_path: str) -> str:
        return source_path + MARKER_SUFFIX

    def resolve_created(self, source_path: str) -> datetime:
        """
        Return the creation date recorded for a source file.

        On first encounter the marker is created and its fresh modification
        time ("now") becomes the creation date; afterwards the marker's
        modification time is read back.
        """
        marker = self.marker_path(source_path)
        try:
            if os.path.exists(marker):
                return utc_from_timestamp(os.stat(marker).st_mtime)

            fd = os.open(marker, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o444)
            try:
                created = os.fstat(fd).st_mtime
            finally:
                os.close(fd)
        except OSError as e:
            raise BuildError(f"Failed to resolve creation date marker {marker}: {e}", path=marker) from e

        self.logger.debug(f"Created date marker {marker}")
        return utc_from_timestamp(created)

    @staticmethod
    def resolve_modified(stat_result: os.stat_result) -> datetime:
        return utc_from_timestamp(stat_result.st_mtime)

    @staticmethod
    def resolve_owner(uid: int) -> str:
        try:
            return pwd.getpwuid(uid).pw_name
        except (KeyError, OverflowError):
            return UNKNOWN_USER

    def filter_arguments(self, source_path: str) -> List[str]:
        return ArgumentBuilder(self.parser_args[0]).extend(self.parser_args[1:]).add(source_path).build()

    def render_body(self, source_path: str) -> bytes:
        """Run the markup filter on a source file and return its output verbatim."""
        return read_pipe(self.filter_arguments(source_path))

    def create_page(self, relative_path: str, stat_result: Optional[os.stat_result] = None) -> Page:
        """
        Build the page record for one source file.

        Args:
            relative_path: Path of the file relative to the source root
            stat_result: The file's stat result, looked up when not given

        Returns:
            The page, with output_path still empty

        Raises:
            BuildError: If the file or its marker cannot be read or created
            PipeError: If the markup filter fails
        """
        source_path = os.path.join(self.source_dir, relative_path)
        if stat_result is None:
            try:
                stat_result = os.stat(source_path)
            except OSError as e:
                raise BuildError(f"Failed to stat {source_path}: {e}", path=source_path) from e

        title = derive_title(relative_path)
        created = self.resolve_created(source_path)
        modified = self.resolve_modified(stat_result)
        user = self.resolve_owner(stat_result.st_uid)
        body = self.render_body(source_path)

        return Page(
            source_path=relative_path,
            title=title,
            body=body,
            created=created,
            modified=modified,
            user=user,
        )
