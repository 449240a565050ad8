"""
Markdown document rendering for Klaus.

A document is a YAML preamble between two ``---`` lines followed by a
Markdown body. The body is converted to HTML with mistune and dropped into
a page template together with the preamble's title.
"""

import re
import html
import logging
from typing import Any, Dict, Tuple

import mistune
import yaml

from .errors import MalformedPreambleError, MissingPreambleError

logger = logging.getLogger('Klaus.markup')

PREAMBLE_DELIMITER = '---'
TITLE_PLACEHOLDER = '{TITLE}'
BODY_PLACEHOLDER = '{BODY}'

DELIMITER_LINE = re.compile(r'^---[ \t]*$')
PLACEHOLDER = re.compile(re.escape(TITLE_PLACEHOLDER) + '|' + re.escape(BODY_PLACEHOLDER))


def normalize_newlines(text: str) -> str:
    """Convert CRLF and bare CR line endings to LF."""
    return text.replace('\r\n', '\n').replace('\r', '\n')


def split_preamble(text: str) -> Tuple[str, str]:
    """
    Split a document into its preamble and body.

    Args:
        text: The full document

    Returns:
        Tuple of (trimmed preamble, body)
    """
    text = normalize_newlines(text)
    if not text.startswith(PREAMBLE_DELIMITER):
        raise MissingPreambleError(
            "Your markdown files must have a section separated by --- and ---. It must contain a title."
        )

    lines = text.split('\n')
    if not DELIMITER_LINE.match(lines[0]):
        raise MalformedPreambleError(f"The opening delimiter line must be exactly '---', found {lines[0]!r}")

    for index in range(1, len(lines)):
        if DELIMITER_LINE.match(lines[index]):
            preamble = '\n'.join(lines[1:index]).strip(' \t\r\n')
            body = '\n'.join(lines[index + 1:])
            return preamble, body

    raise MalformedPreambleError("The preamble is missing its closing '---' line")


def parse_metadata(preamble: str) -> Dict[str, Any]:
    """Parse the preamble as YAML. An empty preamble yields an empty mapping."""
    try:
        metadata = yaml.safe_load(preamble)
    except yaml.YAMLError as e:
        raise MalformedPreambleError(f"Invalid YAML in preamble: {e}") from e

    if metadata is None:
        return {}
    if not isinstance(metadata, dict):
        raise MalformedPreambleError(
            f"The preamble must be a mapping of keys to values, not {type(metadata).__name__}"
        )
    return metadata


def get_title(metadata: Dict[str, Any]) -> str:
    """Return the document title as text, or an empty string when absent."""
    title = metadata.get('title')
    if title is None:
        return ''
    if isinstance(title, (dict, list)):
        raise MalformedPreambleError("The title must be a single value")
    if isinstance(title, bool):
        return 'true' if title else 'false'
    return str(title)


def slugify_heading(text: str) -> str:
    """Derive a URL-safe anchor from rendered heading text."""
    s = html.unescape(re.sub(r'<[^>]+>', '', text)).lower()
    s = re.sub(r'[\W_]+', '-', s)
    s = s.strip('-')
    return s or 'section'


class HeadingIdRenderer(mistune.HTMLRenderer):
    """HTML renderer that gives every heading a unique id attribute."""

    def __init__(self):
        # Raw HTML in documents is trusted and passed through
        super().__init__(escape=False)
        self.heading_ids = {}

    def heading(self, text, level, **attrs):
        base = slugify_heading(text)
        anchor = base
        count = self.heading_ids.get(base, 0)
        # A suffixed id may already be taken by a heading literally named so
        while anchor in self.heading_ids:
            count += 1
            anchor = f"{base}-{count}"
        self.heading_ids[base] = count
        self.heading_ids[anchor] = 0
        return f'<h{level} id="{anchor}">{text}</h{level}>\n'


def create_markdown_parser():
    """Create a Mistune markdown parser with heading ids."""
    return mistune.create_markdown(
        renderer=HeadingIdRenderer(),
        plugins=['table', 'strikethrough', 'task_lists']
    )


def render_markdown(body: str) -> str:
    """Convert a Markdown body to HTML."""
    # A fresh parser per document keeps heading ids unique per page only
    markdown_parser = create_markdown_parser()
    return markdown_parser(normalize_newlines(body))


def substitute(template: str, title: str, body: str) -> str:
    """
    Replace every {TITLE} and {BODY} placeholder in a single pass.

    Substituted text is never rescanned, so a title containing {BODY} stays
    as written.
    """
    values = {TITLE_PLACEHOLDER: title, BODY_PLACEHOLDER: body}
    return PLACEHOLDER.sub(lambda match: values[match.group(0)], template)


def render_page(document: str, template: str) -> str:
    """Render a full page from document text and template text."""
    preamble, body = split_preamble(document)
    metadata = parse_metadata(preamble)
    title = get_title(metadata)
    logger.debug(f"Rendering page titled {title!r}")
    return substitute(template, title, render_markdown(body))
