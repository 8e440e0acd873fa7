#!/usr/bin/env python3
"""
Command-line interface for Pagesmith - static site generator.
"""

import os
import sys
import argparse
from typing import List, Optional

from . import __version__
from .context import BuildContext
from .core import PageSmith
from .errors import PageSmithError
from .settings import PageSmithSettings

SAMPLE_HEADER = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>${title}</title>
<link rel="alternate" type="application/atom+xml" href="${base_url}/atom.xml">
<script src="${base_url}/sorttable.js"></script>
</head>
<body>
<nav><a href="${base_url}/">Home</a> <a href="${base_url}/archive.html">Archive</a></nav>
<main>
"""

SAMPLE_FOOTER = """</main>
<footer>
<p>Created <date datetime="${created}">${created_readable}</date>,
last modified <date datetime="${modified}">${modified_readable}</date>
by ${owner}.</p>
<p>&copy; ${year}</p>
</footer>
</body>
</html>
"""

SAMPLE_INDEX = """# Welcome

This is the home page of your new site. Every file under `src/` becomes a
page in `build/`, wrapped in `header.html` and `footer.html`.

Edit `pagesmith.yml` and run `pagesmith` to rebuild.
"""


def _write_if_missing(path: str, content: str) -> None:
    if os.path.exists(path):
        print(f"File already exists: {path}")
    else:
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        print(f"Created: {path}")


def create_starter_structure(source_dir: str = 'src') -> None:
    """Create a source directory, sample content and header/footer templates."""
    current_dir = os.getcwd()

    source_path = os.path.join(current_dir, source_dir)
    if os.path.exists(source_path):
        print(f"Directory already exists: {source_dir}")
    else:
        os.makedirs(source_path, exist_ok=True)
        print(f"Created directory: {source_dir}")

    _write_if_missing(os.path.join(current_dir, 'header.html'), SAMPLE_HEADER)
    _write_if_missing(os.path.join(current_dir, 'footer.html'), SAMPLE_FOOTER)
    _write_if_missing(os.path.join(source_path, 'index.md'), SAMPLE_INDEX)

    print("\n✅ Starter structure created successfully!")
    print("\nNext steps:")
    print("1. Edit the configuration file (pagesmith.yml)")
    print("2. Customize header.html and footer.html")
    print(f"3. Add your content to '{source_dir}/'")
    print("4. Run 'pagesmith' to build your site")


def build_parser() -> argparse.ArgumentParser:
    # -h selects the news home page, so help is --help only
    parser = argparse.ArgumentParser(description='Pagesmith - Static Site Generator', add_help=False)
    parser.add_argument('--help', action='help', help='Show this help message and exit')
    parser.add_argument('-a', '--archive', action='store_true', default=None,
                        help='Build archive.html listing every page')
    parser.add_argument('-b', '--base-url', dest='base_url', type=str,
                        help='Base URL prepended to generated links')
    parser.add_argument('-f', '--feed', action='store_true', default=None,
                        help='Build the atom.xml feed (requires --feed-title)')
    news = parser.add_mutually_exclusive_group()
    news.add_argument('-h', '--news-home', dest='news', action='store_const', const='home',
                      help='Build the news digest as index.html')
    news.add_argument('-n', '--news', dest='news', action='store_const', const='page',
                      help='Build the news digest as news.html')
    parser.add_argument('-p', '--parser', type=str,
                        help="Markup filter command run on every source file (default 'cat')")
    parser.add_argument('-t', '--feed-title', dest='feed_title', type=str,
                        help='Title of the atom feed')
    parser.add_argument('-u', '--hide-user', dest='hide_user', action='store_true', default=None,
                        help='Hide author names in every output')
    parser.add_argument('--source', type=str, help='Source directory')
    parser.add_argument('--output', type=str, help='Output directory for generated site')
    parser.add_argument('--header', type=str, help='Header template')
    parser.add_argument('--footer', type=str, help='Footer template')
    parser.add_argument('--owner', type=str, help='Site owner named on generated pages and the feed')
    parser.add_argument('--log-dir', dest='log_dir', type=str, help='Directory for build log files')
    parser.add_argument('--verbose', action='store_true', help='Show per-file progress')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter project')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = PageSmithSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter project structure...")
        create_starter_structure()
        return

    # Load settings from configuration file
    settings_loader = PageSmithSettings()
    settings_loader.load_settings()

    # Command line arguments take precedence
    args_dict = {k: v for k, v in vars(args).items() if v is not None and k not in ('init', 'verbose')}
    final_settings = settings_loader.merge_with_args(args_dict)

    try:
        context = BuildContext.from_settings(final_settings)
        generator = PageSmith(context, verbose=args.verbose, log_dir=final_settings.get('log_dir'))
        generator.build()
    except PageSmithError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
