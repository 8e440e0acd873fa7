import os
import re
import stat
import time
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from xml.sax.saxutils import escape

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError

from .context import BuildContext
from .errors import BuildError, ConfigurationError, PageSmithError
from .page import MARKER_SUFFIX, Page, PageProcessor, format_iso
from .renderer import TemplateRenderer

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

NEWS_LIMIT = 10
FEED_LIMIT = 20

CONTINUED_NOTICE = '<p class="cont"><em>Continued...</em></p>'

# Control characters XML 1.0 does not allow in character data
XML_INVALID_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')


def extract_preview(body: str) -> Tuple[str, bool]:
    """
    Cut a page body down to its first paragraph.

    A leading heading is dropped, then everything after the first closing
    paragraph tag. Returns the preview and whether another paragraph
    followed the cut. This is a textual heuristic meant for the simple
    markup a filter produces, not an HTML parser.
    """
    if body.startswith('<h'):
        heading_end = body.find('</h', 2)
        if heading_end != -1:
            body = body[heading_end + len('</h1>'):]

    continued = False
    paragraph_end = body.find('</p>')
    if paragraph_end != -1:
        cut = paragraph_end + len('</p>')
        continued = '<p>' in body[cut:]
        body = body[:cut]

    return body, continued


def _text(value: str) -> str:
    return escape(XML_INVALID_CHARS.sub('', value))


def _attr(value: str) -> str:
    return _text(value).replace('"', '&quot;')


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        allowed_messages = [
            "Building archive",
            "Building feed",
            "Building news",
            "Site build completed in",
            "Total pages generated:",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class PageSmith:
    def __init__(self, context: BuildContext, verbose: bool = False, log_dir: Optional[str] = None):
        self.context = context
        self.verbose = verbose
        self.log_dir = log_dir
        self.pages: List[Page] = []
        self.pages_generated = 0

        self.setup_logging()

        self.processor = PageProcessor(context.source_dir, context.parser_args)
        self.renderer = TemplateRenderer(context)

        # Body markup for the archive and news pages
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('PageSmith')
        self.logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

        if not self.logger.handlers:
            # Console handler, milestones only unless verbose
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.DEBUG if self.verbose else logging.INFO)
            if not self.verbose:
                console_handler.addFilter(InfoFilter())
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('pagesmith_%Y-%m-%d_%H-%M-%S.log')
                file_handler = logging.FileHandler(os.path.join(self.log_dir, log_filename))
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
                self.logger.addHandler(file_handler)
                self.logger.setLevel(logging.DEBUG)

    def validate(self):
        """Fail before any output is written when the settings cannot produce a site."""
        if self.context.feed and not self.context.feed_title:
            raise ConfigurationError("No feed title specified, use -t title")
        if not os.path.isdir(self.context.source_dir):
            raise BuildError(f"Source directory not found: {self.context.source_dir}", path=self.context.source_dir)

    def create_output_dir(self):
        try:
            os.makedirs(self.context.output_dir, exist_ok=True)
        except OSError as e:
            raise BuildError(f"Failed to create output directory {self.context.output_dir}: {e}",
                             path=self.context.output_dir) from e

    def create_mirror_dir(self, relative_dir: str) -> str:
        """Create the output directory mirroring a source directory."""
        out_dir = os.path.join(self.context.output_dir, relative_dir)
        try:
            os.mkdir(out_dir)
        except FileExistsError:
            pass
        except OSError as e:
            raise BuildError(f"Failed to create directory {out_dir}: {e}", path=out_dir) from e
        self.logger.info(relative_dir)
        return out_dir

    def output_file_path(self, relative_path: str) -> str:
        return os.path.join(self.context.output_dir, os.path.splitext(relative_path)[0] + '.html')

    def site_path(self, output_file: str) -> str:
        """The path of an output file as seen from the site root, e.g. /posts/foo.html."""
        relative = os.path.relpath(output_file, self.context.output_dir)
        return '/' + relative.replace(os.sep, '/')

    def write_document(self, path: str, *chunks: bytes):
        """Write chunks to a file in order, each with its exact length."""
        try:
            with open(path, 'wb') as f:
                for chunk in chunks:
                    f.write(chunk)
        except OSError as e:
            raise BuildError(f"Failed to write {path}: {e}", path=path) from e
        self.logger.debug(f"Wrote {path}")

    def render_template(self, template_name: str, **context) -> str:
        """Render a Jinja2 body template."""
        try:
            template = self.env.get_template(template_name)
        except (TemplateNotFound, TemplateSyntaxError) as e:
            raise BuildError(f"Template error in {template_name}: {e}", path=template_name) from e
        return template.render(
            base_url=self.context.base_url,
            hide_user=self.context.hide_user,
            **context
        )

    def build_page(self, relative_path: str, stat_result: os.stat_result) -> Page:
        """Build one source file into header + body + footer."""
        page = self.processor.create_page(relative_path, stat_result)

        output_file = self.output_file_path(relative_path)
        page.output_path = self.site_path(output_file)

        self.logger.info(f"{relative_path} -> {page.title} ({output_file})")

        header, footer = self.renderer.render_pair(self.renderer.values_for_page(page))
        self.write_document(output_file, header, page.body, footer)

        self.pages.append(page)
        self.pages_generated += 1
        return page

    def process_entry(self, relative_path: str) -> Optional[Page]:
        """Build a page from a source file unless it is a marker or not a regular file."""
        if relative_path.endswith(MARKER_SUFFIX):
            self.logger.debug(f"Skipping date marker {relative_path}")
            return None

        source_path = os.path.join(self.context.source_dir, relative_path)
        try:
            stat_result = os.stat(source_path)
        except FileNotFoundError as e:
            if os.path.islink(source_path):
                self.logger.debug(f"Skipping broken link {relative_path}")
                return None
            raise BuildError(f"Failed to stat {source_path}: {e}", path=source_path) from e
        except OSError as e:
            raise BuildError(f"Failed to stat {source_path}: {e}", path=source_path) from e

        if not stat.S_ISREG(stat_result.st_mode):
            self.logger.debug(f"Skipping {relative_path}: not a regular file")
            return None

        return self.build_page(relative_path, stat_result)

    def traverse(self) -> List[Page]:
        """
        Walk the source tree, visiting each directory before its contents.

        Directories are mirrored into the output tree and every regular
        file becomes a page. Symlinked directories are followed, each real
        directory once. The first failure stops the walk.
        """
        source_dir = self.context.source_dir
        visited = set()

        def walk_error(error):
            raise BuildError(f"Failed to read directory {error.filename}: {error}", path=error.filename)

        for dirpath, dirnames, filenames in os.walk(source_dir, onerror=walk_error, followlinks=True):
            visited.add(os.path.realpath(dirpath))
            for dirname in list(dirnames):
                if os.path.realpath(os.path.join(dirpath, dirname)) in visited:
                    self.logger.debug(f"Skipping {os.path.join(dirpath, dirname)}: directory already visited")
                    dirnames.remove(dirname)
            dirnames.sort()
            filenames.sort()

            relative_dir = os.path.relpath(dirpath, source_dir)
            if relative_dir != os.curdir:
                self.create_mirror_dir(relative_dir)

            for filename in filenames:
                relative_path = os.path.normpath(os.path.join(relative_dir, filename))
                self.process_entry(relative_path)

        return self.pages

    def sort_pages(self) -> List[Page]:
        """Sort pages newest first by creation date, keeping discovery order for ties."""
        self.pages.sort(key=lambda page: page.created, reverse=True)
        return self.pages

    def build_archive(self, pages: Optional[List[Page]] = None) -> str:
        """Build archive.html, a sortable table of every page."""
        pages = self.pages if pages is None else pages
        self.logger.info("Building archive...")

        header, footer = self.renderer.render_pair(self.renderer.values_for_aggregate('Archive'))
        body = self.render_template('archive.html', pages=pages)

        output_file = os.path.join(self.context.output_dir, 'archive.html')
        self.write_document(output_file, header, body.encode('utf-8'), footer)
        return output_file

    def build_news(self, pages: Optional[List[Page]] = None, home: bool = False) -> str:
        """Build the news digest of the newest pages, as news.html or as the home page."""
        pages = self.pages if pages is None else pages
        self.logger.info("Building news...")

        previews = []
        for page in pages[:NEWS_LIMIT]:
            preview, continued = extract_preview(page.body_text)
            previews.append({'page': page, 'preview': preview, 'continued': continued})

        header, footer = self.renderer.render_pair(self.renderer.values_for_aggregate('News'))
        body = self.render_template('news.html', previews=previews, continued_notice=CONTINUED_NOTICE)

        filename = 'index.html' if home else 'news.html'
        output_file = os.path.join(self.context.output_dir, filename)
        self.write_document(output_file, header, body.encode('utf-8'), footer)
        return output_file

    def generate_feed_xml(self, pages: List[Page], now: Optional[datetime] = None) -> str:
        """Atom document for the newest pages."""
        if not self.context.feed_title:
            raise ConfigurationError("No feed title specified, use -t title")

        now = now or datetime.now(timezone.utc)
        base_url = self.context.base_url

        lines = [
            '<?xml version="1.0" encoding="utf-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            f'<title>{_text(self.context.feed_title)}</title>',
            f'<id>{_text(base_url)}</id>',
            f'<link href="{_attr(base_url)}/" />',
            f'<link rel="self" href="{_attr(base_url)}/atom.xml" />',
        ]
        if not self.context.hide_user:
            lines += ['<author>', f'\t<name>{_text(self.context.owner)}</name>', '</author>']
        lines.append(f'<updated>{format_iso(now)}</updated>')

        for page in pages[:FEED_LIMIT]:
            link = base_url + page.output_path
            lines += [
                '',
                '<entry>',
                f'<title>{_text(page.title)}</title>',
                f'<link href="{_attr(link)}" />',
                f'<id>{_text(link)}</id>',
            ]
            if not self.context.hide_user:
                lines += ['<author>', f'\t<name>{_text(page.user)}</name>', '</author>']
            lines += [
                f'<published>{page.created_iso}</published>',
                f'<updated>{page.modified_iso}</updated>',
                '',
                '<content type="html">',
                f'{_text(page.body_text)}</content>',
                '</entry>',
            ]

        lines.append('</feed>')
        return '\n'.join(lines) + '\n'

    def build_feed(self, pages: Optional[List[Page]] = None) -> str:
        """Build atom.xml from the newest pages."""
        pages = self.pages if pages is None else pages
        self.logger.info("Building feed...")

        feed_xml = self.generate_feed_xml(pages)
        output_file = os.path.join(self.context.output_dir, 'atom.xml')
        self.write_document(output_file, feed_xml.encode('utf-8'))
        return output_file

    def build(self) -> List[Page]:
        """Main build process."""
        start_time = time.time()
        self.logger.debug("Starting site build...")

        try:
            self.validate()
            self.create_output_dir()
            self.traverse()
            self.sort_pages()

            if self.context.archive:
                self.build_archive()
            if self.context.feed:
                self.build_feed()
            if self.context.news:
                self.build_news(home=self.context.news == 'home')
        except PageSmithError as e:
            self.logger.error(f"Build failed: {e}")
            raise

        total_time = time.time() - start_time
        self.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        self.logger.info(f"Total pages generated: {self.pages_generated}")
        return self.pages
