"""Test configuration and fixtures for Pagesmith tests."""

import pytest
import tempfile
import shutil
import os
from pathlib import Path

from pagesmith_pkg.context import BuildContext

HEADER_TEMPLATE = "<header>${title}|${base_url}|${owner}</header>\n"
FOOTER_TEMPLATE = "<footer>${created} ${modified} ${year}</footer>\n"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def source_dir(temp_dir):
    """Create an empty source directory."""
    src = Path(temp_dir) / 'src'
    src.mkdir()
    return str(src)


@pytest.fixture
def output_dir(temp_dir):
    """Path of the (not yet created) output directory."""
    return str(Path(temp_dir) / 'build')


@pytest.fixture
def templates(temp_dir):
    """Create header and footer templates, returning their paths."""
    header = Path(temp_dir) / 'header.html'
    footer = Path(temp_dir) / 'footer.html'
    header.write_text(HEADER_TEMPLATE)
    footer.write_text(FOOTER_TEMPLATE)
    return str(header), str(footer)


@pytest.fixture
def make_context(source_dir, output_dir, templates):
    """Factory for build contexts pointing at the temporary site."""
    header, footer = templates

    def factory(**overrides):
        settings = dict(
            source_dir=source_dir,
            output_dir=output_dir,
            header_template=header,
            footer_template=footer,
            owner='siteowner',
        )
        settings.update(overrides)
        return BuildContext(**settings)

    return factory


@pytest.fixture
def write_source(source_dir):
    """Write a file into the source tree, creating parent directories."""
    def writer(relative_path, content, created=None):
        path = Path(source_dir) / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
        if created is not None:
            marker = Path(str(path) + '.date')
            marker.write_text('')
            os.utime(marker, (created, created))
        return str(path)

    return writer
