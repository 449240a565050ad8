"""
Downscaling of JPEG photographs to fit a square bounding box.
"""

import logging

from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailedError, EncodeFailedError, IOFailedError, SourceNotFoundError

logger = logging.getLogger('Klaus.images')

MAX_IMAGE_SIZE = 1000

# Pillow reports multi-picture camera JPEGs as MPO
JPEG_FORMATS = ('JPEG', 'MPO')


def compute_target_size(width, height, max_size=MAX_IMAGE_SIZE, allow_upscale=False):
    """
    Scale (width, height) so the longer side equals max_size.

    The ratio is taken from the height for portrait images and from the
    width otherwise. Dimensions are truncated toward zero but never drop
    below one pixel. Unless allow_upscale is set, images already inside the
    box keep their size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")

    longest = height if height > width else width
    if longest <= max_size and not allow_upscale:
        return width, height

    # Integer arithmetic gives the exact floor of size * (max_size / longest)
    return max(1, width * max_size // longest), max(1, height * max_size // longest)


def resize_jpeg(source_path, dest_path, max_size=MAX_IMAGE_SIZE, allow_upscale=False):
    """
    Decode a JPEG, resample it into the bounding box and write it to dest_path.

    Returns:
        The (width, height) of the written image
    """
    try:
        with Image.open(source_path) as img:
            if img.format not in JPEG_FORMATS:
                raise DecodeFailedError(f"{source_path} is not a JPEG image (found {img.format})", path=source_path)
            img.load()
            target_size = compute_target_size(img.width, img.height, max_size, allow_upscale)
            resized = img.resize(target_size, Image.Resampling.BICUBIC)
    except FileNotFoundError as e:
        raise SourceNotFoundError(f"{source_path} does not exist", path=source_path) from e
    except UnidentifiedImageError as e:
        raise DecodeFailedError(f"Failed to decode {source_path}: {e}", path=source_path) from e
    except PermissionError as e:
        raise IOFailedError(f"Failed to read {source_path}: {e}", path=source_path) from e
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        # Truncated or corrupt scan data surfaces during load()
        raise DecodeFailedError(f"Failed to decode {source_path}: {e}", path=source_path) from e

    try:
        output = open(dest_path, 'wb')
    except (IOError, OSError) as e:
        raise IOFailedError(f"Failed to open {dest_path} for writing: {e}", path=source_path) from e

    with output:
        try:
            resized.save(output, 'JPEG')
        except (OSError, ValueError, KeyError) as e:
            raise EncodeFailedError(f"Failed to encode {dest_path}: {e}", path=source_path) from e

    logger.debug(f"Resized {source_path} -> {dest_path} ({target_size[0]}x{target_size[1]})")
    return target_size
