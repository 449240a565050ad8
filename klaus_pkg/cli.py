#!/usr/bin/env python3
"""
Command-line interface for Klaus - static site generator.
"""

import os
import sys
import argparse
from typing import List, Optional
from . import __version__
from .core import Klaus
from .settings import KlausSettings

STARTER_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{TITLE}</title>
    <link rel="stylesheet" href="/main.css">
</head>
<body>
    <main>
{BODY}
    </main>
</body>
</html>
"""

STARTER_STYLESHEET = """body {
    font-family: Georgia, serif;
    line-height: 1.6;
    margin: 0 auto;
    max-width: 42rem;
    padding: 1rem;
}

img {
    max-width: 100%;
    height: auto;
}
"""

STARTER_PAGE = """---
title: "Welcome to Klaus"
---

# Welcome to Klaus

This page was published from `content/index.md`.

## Getting Started

1. Edit `templates/main.html`; `{TITLE}` and `{BODY}` are replaced on every page
2. Add `.md` files and folders under `content/`
3. Drop JPEG photos anywhere in `content/`; they are shrunk to fit 1000x1000
4. Run `klaus` to publish into `published/`
"""


def create_starter_structure() -> None:
    """Create starter templates and content without overwriting anything."""
    current_dir = os.getcwd()

    for directory in ['templates', 'content']:
        dir_path = os.path.join(current_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {directory}")

    starter_files = [
        ('templates/main.html', STARTER_TEMPLATE),
        ('templates/main.css', STARTER_STYLESHEET),
        ('content/index.md', STARTER_PAGE),
    ]

    for relative_path, contents in starter_files:
        file_path = os.path.join(current_dir, *relative_path.split('/'))
        if os.path.exists(file_path):
            print(f"File already exists: {relative_path}")
        else:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(contents)
            print(f"Created file: {relative_path}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Klaus - publish content/ into published/ using templates/main.html'
    )
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter site')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = KlausSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter project structure...")
        create_starter_structure()

        print("\nYour new Klaus site is ready! Run 'klaus' to publish it.")
        return

    try:
        # Load settings from configuration file
        settings_loader = KlausSettings()
        final_settings = settings_loader.load_settings()

        # Expand home directory if needed
        output_dir = os.path.expanduser(final_settings['output'])

        generator = Klaus(
            content_dir=final_settings['content'],
            templates_dir=final_settings['templates'],
            output_dir=output_dir,
            template=final_settings['template'],
            stylesheet=final_settings['stylesheet'],
            max_image_size=final_settings['max_image_size'],
            upscale_images=final_settings['upscale_images'],
            strict=final_settings['strict'],
            log_dir=final_settings['log_dir']
        )

        try:
            result = generator.build()
        finally:
            generator.cleanup()

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not result.ok:
        sys.exit(1)


if __name__ == '__main__':
    main()
