"""Tests for JPEG downscaling."""

import pytest
import os
from pathlib import Path
from PIL import Image

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from klaus_pkg.errors import DecodeFailedError, IOFailedError, SourceNotFoundError
from klaus_pkg.images import compute_target_size, resize_jpeg


class TestComputeTargetSize:
    """Test cases for the bounding-box arithmetic."""

    def test_landscape(self):
        """Test landscape images scale by width."""
        assert compute_target_size(4000, 2000) == (1000, 500)

    def test_portrait(self):
        """Test portrait images scale by height."""
        assert compute_target_size(800, 2400) == (333, 1000)

    def test_square(self):
        assert compute_target_size(3000, 3000) == (1000, 1000)

    def test_truncates(self):
        """Test fractional sizes are truncated toward zero."""
        assert compute_target_size(3000, 1999) == (1000, 666)

    def test_small_image_kept(self):
        """Test images inside the box are not enlarged by default."""
        assert compute_target_size(500, 250) == (500, 250)

    def test_small_image_upscaled(self):
        """Test images inside the box fill it when upscaling is allowed."""
        assert compute_target_size(500, 250, allow_upscale=True) == (1000, 500)

    def test_custom_box(self):
        assert compute_target_size(1600, 1200, max_size=400) == (400, 300)

    def test_extreme_aspect_ratio(self):
        """Test a dimension never collapses to zero pixels."""
        assert compute_target_size(5000, 2) == (1000, 1)

    def test_aspect_ratio_preserved(self):
        """Test the output fits the box for every downscaled input."""
        for width, height in [(4000, 3000), (1234, 5678), (1001, 1000), (999, 1001)]:
            new_width, new_height = compute_target_size(width, height)
            assert max(new_width, new_height) == 1000
            assert abs(new_width / new_height - width / height) < 0.01

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            compute_target_size(0, 100)


class TestResizeJpeg:
    """Test cases for resize_jpeg."""

    def test_resize_landscape(self, temp_dir, make_jpeg):
        """Test an oversize landscape JPEG is shrunk into the box."""
        source = make_jpeg(Path(temp_dir) / 'pic.jpg', (4000, 2000))
        dest = Path(temp_dir) / 'out.jpg'

        size = resize_jpeg(str(source), str(dest))

        assert size == (1000, 500)
        with Image.open(dest) as img:
            assert img.format == 'JPEG'
            assert img.size == (1000, 500)

    def test_resize_portrait(self, temp_dir, make_jpeg):
        """Test a portrait JPEG is bounded by its height."""
        source = make_jpeg(Path(temp_dir) / 'upright.JPG', (800, 2400))
        dest = Path(temp_dir) / 'upright-out.JPG'

        resize_jpeg(str(source), str(dest))

        with Image.open(dest) as img:
            assert img.height == 1000
            assert img.width == 333

    def test_resize_overwrites_destination(self, temp_dir, make_jpeg):
        source = make_jpeg(Path(temp_dir) / 'pic.jpg', (2000, 2000))
        dest = Path(temp_dir) / 'out.jpg'
        dest.write_bytes(b'old contents')

        resize_jpeg(str(source), str(dest))

        with Image.open(dest) as img:
            assert img.size == (1000, 1000)

    def test_resize_small_image_upscale(self, temp_dir, make_jpeg):
        source = make_jpeg(Path(temp_dir) / 'small.jpg', (100, 50))
        dest = Path(temp_dir) / 'out.jpg'

        assert resize_jpeg(str(source), str(dest)) == (100, 50)
        assert resize_jpeg(str(source), str(dest), allow_upscale=True) == (1000, 500)

    def test_resize_png_with_jpg_name(self, temp_dir):
        """Test a non-JPEG image is rejected even with a .jpg name."""
        source = Path(temp_dir) / 'fake.jpg'
        Image.new('RGB', (10, 10), color='blue').save(source, 'PNG')

        with pytest.raises(DecodeFailedError, match="not a JPEG"):
            resize_jpeg(str(source), os.path.join(temp_dir, 'out.jpg'))

    def test_resize_garbage(self, temp_dir):
        source = Path(temp_dir) / 'garbage.jpg'
        source.write_bytes(b'this is not an image at all')

        with pytest.raises(DecodeFailedError):
            resize_jpeg(str(source), os.path.join(temp_dir, 'out.jpg'))

    def test_resize_truncated(self, temp_dir, make_jpeg):
        """Test a JPEG cut off mid-stream fails to decode."""
        source = make_jpeg(Path(temp_dir) / 'full.jpg', (400, 400))
        data = source.read_bytes()
        truncated = Path(temp_dir) / 'truncated.jpg'
        truncated.write_bytes(data[:len(data) // 2])

        with pytest.raises(DecodeFailedError):
            resize_jpeg(str(truncated), os.path.join(temp_dir, 'out.jpg'))

    def test_resize_missing_source(self, temp_dir):
        with pytest.raises(SourceNotFoundError):
            resize_jpeg(os.path.join(temp_dir, 'missing.jpg'), os.path.join(temp_dir, 'out.jpg'))

    def test_resize_unwritable_destination(self, temp_dir, make_jpeg):
        """Test a destination in a missing directory is an IO failure."""
        source = make_jpeg(Path(temp_dir) / 'pic.jpg', (10, 10))

        with pytest.raises(IOFailedError):
            resize_jpeg(str(source), os.path.join(temp_dir, 'missing', 'out.jpg'))
