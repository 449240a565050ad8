"""Test configuration and fixtures for Klaus tests."""

import pytest
import tempfile
import shutil
from pathlib import Path
from PIL import Image

PAGE_TEMPLATE = "<html><title>{TITLE}</title><body>{BODY}</body></html>"
STYLESHEET = "body { font-family: serif; }\n"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def site_dir(temp_dir, monkeypatch):
    """Create an empty site (content/ and templates/) and make it the working directory."""
    root = Path(temp_dir)
    (root / 'content').mkdir()
    templates_dir = root / 'templates'
    templates_dir.mkdir()
    (templates_dir / 'main.html').write_text(PAGE_TEMPLATE)
    (templates_dir / 'main.css').write_text(STYLESHEET)
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def make_jpeg():
    """Return a helper that writes a solid-colour JPEG of the given size."""
    def _make_jpeg(path, size, color='red'):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new('RGB', size, color=color).save(path, 'JPEG')
        return path
    return _make_jpeg


@pytest.fixture
def sample_document():
    """A document with a preamble and a Markdown body."""
    return """---
title: Hi
description: ignored by the renderer
---
# Greeting

Hello *world*.
"""
