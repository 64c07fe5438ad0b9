"""
Image utilities for the migration pipeline.
"""

from pathlib import Path
from typing import Tuple, Union
from PIL import Image
import numpy as np
import io


class ImageUtils:
    """Utility class for common image operations."""

    @staticmethod
    def load_image(data: Union[bytes, str, Path, Image.Image]) -> Image.Image:
        """
        Load image from various sources and force pixel decoding.

        Args:
            data: Image data as bytes, file path, or PIL Image

        Returns:
            PIL Image object

        Raises:
            ValueError: If data cannot be loaded as image
        """
        if isinstance(data, Image.Image):
            return data
        elif isinstance(data, bytes):
            try:
                image = Image.open(io.BytesIO(data))
                image.load()
                return image
            except Exception as e:
                raise ValueError(f"Cannot load image from bytes: {e}")
        elif isinstance(data, (str, Path)):
            try:
                with Image.open(data) as image:
                    image.load()
                    return image.copy()
            except Exception as e:
                raise ValueError(f"Cannot load image from path '{data}': {e}")
        else:
            raise ValueError(f"Unsupported image data type: {type(data)}")

    @staticmethod
    def image_size(path: Union[str, Path]) -> Tuple[int, int]:
        """Read image dimensions from the file header without decoding pixels."""
        try:
            with Image.open(path) as image:
                return image.size
        except Exception as e:
            raise ValueError(f"Cannot read image header '{path}': {e}")

    @staticmethod
    def verify_image(path: Union[str, Path]) -> None:
        """
        Check that an image file decodes.

        Raises:
            ValueError: If the file is not a decodable image
        """
        try:
            with Image.open(path) as image:
                image.verify()
        except Exception as e:
            raise ValueError(f"Image failed to decode: {e}")

    @staticmethod
    def save_image(image: Image.Image, path: str, format: str = 'PNG', **kwargs) -> None:
        """
        Save image to file with quality preservation.

        Args:
            image: Image to save
            path: Output file path
            format: Image format (PNG, JPEG, etc.)
            **kwargs: Additional save parameters
        """
        save_kwargs = {}

        if format.upper() == 'PNG':
            save_kwargs['compress_level'] = kwargs.pop('compress_level', 6)
        elif format.upper() in ['JPEG', 'JPG']:
            save_kwargs['quality'] = kwargs.pop('quality', 95)

        save_kwargs.update(kwargs)

        image.save(path, format=format, **save_kwargs)

    @staticmethod
    def ensure_rgba(image: Image.Image) -> Image.Image:
        """Convert image to RGBA mode if not already."""
        if image.mode != 'RGBA':
            return image.convert('RGBA')
        return image

    @staticmethod
    def has_pixel_data(image: Image.Image) -> bool:
        """
        Check that an image carries visible pixel data.

        An image with an alpha channel that is fully transparent has no
        backing texture as far as the engine is concerned.

        Args:
            image: Image to check

        Returns:
            True if the image has a non-zero area and at least one visible pixel
        """
        if image.width == 0 or image.height == 0:
            return False

        if 'A' not in image.getbands() and image.mode != 'P':
            return True

        alpha = np.array(ImageUtils.ensure_rgba(image).split()[-1])
        return bool(np.any(alpha > 0))

    @staticmethod
    def raster_rect_to_box(rect: Tuple[int, int, int, int], image_height: int) -> Tuple[int, int, int, int]:
        """
        Convert a bottom-left origin rect into a Pillow crop box.

        Args:
            rect: (x, y, width, height) with y measured from the bottom edge
            image_height: Height of the source image

        Returns:
            (left, top, right, bottom) in Pillow's top-left origin
        """
        x, y, width, height = rect
        top = image_height - (y + height)
        return (x, top, x + width, top + height)

    @staticmethod
    def crop_raster_rect(image: Image.Image, rect: Tuple[int, int, int, int]) -> Image.Image:
        """Crop a bottom-left origin rect out of ``image``."""
        return image.crop(ImageUtils.raster_rect_to_box(rect, image.height))
