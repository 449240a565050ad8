"""
Klaus - A small static site generator.

Klaus walks a content tree, renders Markdown documents with a YAML preamble
into a single page template, shrinks oversized JPEG photographs and copies
every other file verbatim into a mirrored output tree.
"""

__version__ = "0.2.0"

from .core import Klaus, FileProcessor, PublishResult, walk_content
from .errors import KlausError

__all__ = ['Klaus', 'FileProcessor', 'PublishResult', 'walk_content', 'KlausError']
