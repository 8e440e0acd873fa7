#!/usr/bin/env python3
"""
Markdown markup filter for Pagesmith.

Converts one Markdown file to HTML and writes it to standard output, which
is the contract the generator expects from its ``--parser`` command::

    pagesmith -p pagesmith-markdown
"""

import sys
import argparse
from typing import List, Optional

import mistune


def create_markdown_parser():
    """Create a Mistune markdown parser with a custom renderer."""
    class CustomRenderer(mistune.HTMLRenderer):
        def __init__(self):
            super().__init__(escape=False)
        def block_code(self, code, info=None):
            escaped_code = mistune.escape(code)
            return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>\n'.format(escaped_code)
    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'task_lists', 'strikethrough']
    )


def convert(text: str) -> str:
    """Convert markdown text to HTML."""
    return create_markdown_parser()(text)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='Convert a Markdown file to HTML on standard output')
    parser.add_argument('file', help='Markdown file to convert')
    args = parser.parse_args(argv)

    try:
        with open(args.file, 'r', encoding='utf-8') as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: failed to read {args.file}: {e}", file=sys.stderr)
        sys.exit(1)

    sys.stdout.write(convert(text))
    sys.stdout.flush()


if __name__ == '__main__':
    main()
