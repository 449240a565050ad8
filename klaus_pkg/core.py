import os
import sys
import time
import logging
from collections import namedtuple
from datetime import datetime

from . import __version__
from .assets import copy_file
from .errors import IOFailedError, KlausError, WalkAbortedError
from .images import MAX_IMAGE_SIZE, resize_jpeg
from .markup import render_page

# Mirrored directories are owner+group rwx
DIR_MODE = 0o770

MARKDOWN_EXTENSIONS = ('.md',)
JPEG_EXTENSIONS = ('.jpg',)

SourceEntry = namedtuple('SourceEntry', ['path', 'rel_path', 'is_dir', 'ext'])


def file_extension(name):
    """
    Lowercased suffix from the last dot, dot included.

    Unlike os.path.splitext, a dotfile such as '.md' has the extension '.md'.
    """
    if '.' not in name:
        return ''
    return '.' + name.rsplit('.', 1)[1].lower()


def walk_content(content_dir):
    """
    Yield every entry below content_dir in sorted pre-order.

    A directory is yielded before anything inside it. The root itself is
    not yielded.
    """
    return _walk_directory(content_dir, content_dir)


def _walk_directory(content_dir, directory):
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise WalkAbortedError(f"Failed to read directory {directory}: {e}", path=directory) from e

    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            raise WalkAbortedError(f"Failed to stat {entry.path}: {e}", path=entry.path) from e

        rel_path = os.path.relpath(entry.path, content_dir)
        ext = file_extension(entry.name)
        yield SourceEntry(entry.path, rel_path, is_dir, ext)

        if is_dir:
            yield from _walk_directory(content_dir, entry.path)


class PublishResult:
    """Counters and failures collected during one build."""

    def __init__(self):
        self.markdown_count = 0
        self.other_count = 0
        self.images_resized = 0
        self.failures = []
        self.aborted = False
        self.elapsed = 0.0

    @property
    def ok(self):
        return not self.failures and not self.aborted

    def __repr__(self):
        return (f"PublishResult(markdown={self.markdown_count}, other={self.other_count}, "
                f"images={self.images_resized}, failures={len(self.failures)})")


class FileProcessor:
    """Route a single source entry through the matching pipeline."""

    def __init__(self, content_dir, templates_dir, output_dir, template='main.html',
                 max_image_size=MAX_IMAGE_SIZE, upscale_images=False):
        self.content_dir = content_dir
        self.templates_dir = templates_dir
        self.output_dir = output_dir
        self.template_path = os.path.join(templates_dir, template)
        self.max_image_size = max_image_size
        self.upscale_images = upscale_images
        self.logger = logging.getLogger('Klaus.FileProcessor')

    def process(self, entry):
        """
        Publish one entry.

        Returns the pipeline that handled it: 'directory', 'markdown',
        'image' or 'asset'.
        """
        if entry.is_dir:
            self.ensure_dir(self.mirror_path(entry.rel_path))
            return 'directory'
        if entry.ext in MARKDOWN_EXTENSIONS:
            self.process_markdown(entry)
            return 'markdown'
        if entry.ext in JPEG_EXTENSIONS:
            self.process_image(entry)
            return 'image'
        self.process_asset(entry)
        return 'asset'

    def process_markdown(self, entry):
        """Render a markdown document into the page template."""
        self.logger.info(f"Processing file: {entry.path}")

        target_path = self.mirror_path(entry.rel_path, new_ext='.html')
        self.ensure_dir(os.path.dirname(target_path))

        document = self.read_text(entry.path)
        # Template bytes pass through untouched, line endings included
        template = self.read_text(self.template_path, newline='', errors='surrogateescape')
        page = render_page(document, template)

        self.write_text(target_path, page)
        self.logger.debug(f"Generated HTML: {target_path}")

    def process_image(self, entry):
        target_path = self.mirror_path(entry.rel_path)
        self.ensure_dir(os.path.dirname(target_path))
        resize_jpeg(entry.path, target_path, self.max_image_size, self.upscale_images)

    def process_asset(self, entry):
        target_path = self.mirror_path(entry.rel_path)
        self.ensure_dir(os.path.dirname(target_path))
        copy_file(entry.path, target_path)

    def mirror_path(self, rel_path, new_ext=None):
        """Map a path relative to the content root onto the output root."""
        target_path = os.path.join(self.output_dir, rel_path)
        if new_ext:
            old_ext = file_extension(os.path.basename(target_path))
            target_path = target_path[:len(target_path) - len(old_ext)] + new_ext

        # Verify the final path is within output_dir
        abs_output = os.path.abspath(self.output_dir)
        abs_target = os.path.abspath(target_path)
        if abs_target == abs_output or os.path.commonpath([abs_output, abs_target]) != abs_output:
            raise IOFailedError(f"Path traversal attempt detected: {rel_path}", path=rel_path)
        return target_path

    def ensure_dir(self, path):
        try:
            os.makedirs(path, mode=DIR_MODE, exist_ok=True)
        except OSError as e:
            raise IOFailedError(f"Failed to create directory {path}: {e}", path=path) from e

    def read_text(self, path, newline=None, errors='strict'):
        try:
            with open(path, 'r', encoding='utf-8', newline=newline, errors=errors) as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise IOFailedError(f"{path} is not valid UTF-8: {e}", path=path) from e
        except (IOError, OSError) as e:
            raise IOFailedError(f"Failed to read {path}: {e}", path=path) from e

    def write_text(self, path, text):
        try:
            with open(path, 'w', encoding='utf-8', newline='', errors='surrogateescape') as f:
                f.write(text)
        except (IOError, OSError) as e:
            raise IOFailedError(f"Failed to write HTML file {path}: {e}", path=path) from e


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno != logging.INFO:
            return False
        allowed_messages = [
            "Ich bin Klaus",
            "Processing file:",
            "Publish complete."
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class Klaus:
    def __init__(self, content_dir='content', templates_dir='templates', output_dir='published',
                 template='main.html', stylesheet='main.css', max_image_size=MAX_IMAGE_SIZE,
                 upscale_images=False, strict=False, log_dir='logs'):
        if isinstance(max_image_size, bool) or not isinstance(max_image_size, int) or max_image_size <= 0:
            raise ValueError(f"max_image_size must be a positive integer, got {max_image_size!r}")

        self.content_dir = content_dir
        self.templates_dir = templates_dir
        self.output_dir = output_dir
        self.stylesheet = stylesheet
        self.strict = strict
        self.log_dir = log_dir

        self.setup_logging()

        self.processor = FileProcessor(
            content_dir, templates_dir, output_dir,
            template=template,
            max_image_size=max_image_size,
            upscale_images=upscale_images
        )

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Klaus')
        self.logger.setLevel(logging.DEBUG)

        # Replace handlers left by an earlier instance in the same process
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        # Console handler with filter
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        self.logger.addHandler(console_handler)

        # Diagnostics go to stderr
        error_handler = logging.StreamHandler(sys.stderr)
        error_handler.setLevel(logging.WARNING)
        error_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        self.logger.addHandler(error_handler)

        # File handler for all logs
        if self.log_dir:
            os.makedirs(self.log_dir, exist_ok=True)
            log_filename = datetime.now().strftime('klaus_%Y-%m-%d_%H-%M-%S.log')
            log_filepath = os.path.join(self.log_dir, log_filename)

            file_handler = logging.FileHandler(log_filepath)
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def cleanup(self):
        """Cleanup resources (detach and close log handlers)."""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def create_output_dir(self):
        """Create the output root directory."""
        try:
            os.makedirs(self.output_dir, mode=DIR_MODE, exist_ok=True)
        except OSError as e:
            raise IOFailedError(f"Failed to create output directory {self.output_dir}: {e}",
                                path=self.output_dir) from e

    def copy_stylesheet(self, result):
        """Copy the template stylesheet to the output root."""
        source = os.path.join(self.templates_dir, self.stylesheet)
        target = os.path.join(self.output_dir, os.path.basename(self.stylesheet))
        try:
            copy_file(source, target)
        except KlausError as e:
            self.record_failure(result, source, e)

    def publish_entry(self, entry, result):
        try:
            kind = self.processor.process(entry)
        except KlausError as e:
            self.record_failure(result, entry.path, e)
            return

        if kind == 'markdown':
            result.markdown_count += 1
        elif kind == 'image':
            result.images_resized += 1
        elif kind == 'asset':
            result.other_count += 1

    def record_failure(self, result, path, error):
        self.logger.error(f"Failed to publish {path}: {error}")
        result.failures.append((path, error))
        if self.strict:
            raise error

    def build(self):
        """
        Publish the content tree into the output directory.

        Returns:
            PublishResult with the counters of this run
        """
        start_time = time.perf_counter()
        result = PublishResult()

        self.logger.info(f"Ich bin Klaus v{__version__}")
        self.create_output_dir()
        self.copy_stylesheet(result)

        try:
            for entry in walk_content(self.content_dir):
                self.publish_entry(entry, result)
        except WalkAbortedError as e:
            self.logger.error(f"Walk aborted: {e}")
            result.aborted = True
            if self.strict:
                raise

        result.elapsed = time.perf_counter() - start_time
        self.logger.info(
            f"Publish complete. Published {result.markdown_count} markdown files and "
            f"{result.other_count} other files. Time: {result.elapsed:.6f}s"
        )
        self.logger.debug(f"JPEG images resized: {result.images_resized}")
        return result
