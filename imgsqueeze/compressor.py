"""
Core Image Compression Engine

Encodes a single uploaded image at a given quality into the requested format.

Format policy:
1. 'original' resolves to the format detected in the source
2. Known targets (JPEG, PNG, WebP, AVIF) use format-specific encoder settings
3. Anything else, including AVIF without an encoder, falls back to JPEG
"""

import io
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from PIL import Image

# Registers the AVIF plugin on Pillow builds without native support
try:
    import pillow_avif  # noqa: F401
except ImportError:
    pass

from .utils import decode_data_uri, encode_data_uri, format_size

logger = logging.getLogger(__name__)

Image.init()
AVIF_AVAILABLE = 'AVIF' in Image.SAVE

DEFAULT_QUALITY = 80
OUTPUT_FORMATS = ('original', 'jpeg', 'png', 'webp')

_LEADING_INT_RE = re.compile(r'^\s*([+-]?\d+)')


def normalize_quality(value: Any, default: int = DEFAULT_QUALITY) -> int:
    """
    Coerce a raw quality value into the 10-100 range.

    Only the leading integer counts ("55.5" is 55). Missing, unparsable or
    zero values give the default.
    """
    match = _LEADING_INT_RE.match('' if value is None else str(value))
    if not match:
        return default
    quality = int(match.group(1))
    if quality == 0:
        return default
    return max(10, min(100, quality))


@dataclass
class ImageInfo:
    """Metadata of the uploaded original."""
    name: str
    size: int
    width: int
    height: int
    format: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'size': self.size,
            'width': self.width,
            'height': self.height,
            'format': self.format,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ImageInfo':
        return cls(
            name=data.get('name') or 'image',
            size=int(data.get('size') or 0),
            width=int(data.get('width') or 0),
            height=int(data.get('height') or 0),
            format=data.get('format') or 'unknown',
        )


@dataclass
class CompressedImage:
    """Encoded output, carried as a data URI."""
    size: int
    width: int
    height: int
    format: str
    data_uri: str

    @property
    def payload(self) -> bytes:
        """Raw encoded bytes decoded from the data URI."""
        return decode_data_uri(self.data_uri)[1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'size': self.size,
            'width': self.width,
            'height': self.height,
            'format': self.format,
            'base64': self.data_uri,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompressedImage':
        """
        Raises:
            ValueError: if the payload is missing or not a base64 data URI
        """
        data_uri = data.get('base64')
        if not data_uri:
            raise ValueError("Compressed image has no payload")
        decode_data_uri(data_uri)
        return cls(
            size=int(data.get('size') or 0),
            width=int(data.get('width') or 0),
            height=int(data.get('height') or 0),
            format=data.get('format') or 'jpeg',
            data_uri=data_uri,
        )


@dataclass
class CompressionResult:
    """Result of a compression operation."""
    original: ImageInfo
    compressed: CompressedImage
    compression_ratio: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'original': self.original.to_dict(),
            'compressed': self.compressed.to_dict(),
            'compressionRatio': self.compression_ratio,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompressionResult':
        """Build a result from the JSON body returned by the compress endpoint."""
        if 'original' not in data or 'compressed' not in data:
            raise ValueError("Response is missing 'original' or 'compressed'")
        return cls(
            original=ImageInfo.from_dict(data['original']),
            compressed=CompressedImage.from_dict(data['compressed']),
            compression_ratio=float(data.get('compressionRatio') or 0.0),
        )


class ImageCompressor:
    """
    Quality-driven image compression backed by Pillow.

    Example:
        compressor = ImageCompressor()
        result = compressor.compress_bytes(data, "photo.png", quality=70, output_format="webp")
        print(f"{result.compressed.format}: -{result.compression_ratio}%")
    """

    # Format-specific settings
    FORMAT_CONFIG = {
        'jpeg': {
            'pil_format': 'JPEG',
            'modes': ('RGB', 'L', 'CMYK'),
            'convert_to': 'RGB',
            'save_kwargs': lambda q: {'quality': q, 'optimize': True, 'progressive': True},
        },
        'png': {
            'pil_format': 'PNG',
            'modes': ('1', 'L', 'LA', 'P', 'RGB', 'RGBA', 'I', 'I;16'),
            'convert_to': 'RGBA',
            'save_kwargs': lambda q: {'optimize': True, 'compress_level': 9},
        },
        'webp': {
            'pil_format': 'WEBP',
            'modes': ('RGB', 'RGBA'),
            'convert_to': 'RGBA',
            'save_kwargs': lambda q: {'quality': q, 'method': 6},
        },
        'avif': {
            'pil_format': 'AVIF',
            'modes': ('RGB', 'RGBA'),
            'convert_to': 'RGBA',
            'save_kwargs': lambda q: {'quality': q, 'speed': 6},
        },
    }

    # Pillow format names that map onto one of ours
    FORMAT_ALIASES = {
        'jpg': 'jpeg',
        'mpo': 'jpeg',
    }

    def __init__(self, verbose: bool = False):
        """
        Initialize compressor.

        Args:
            verbose: Log per-image progress at INFO level
        """
        self.verbose = verbose

    def _log(self, message: str) -> None:
        """Log message if verbose mode enabled."""
        if self.verbose:
            logger.info(message)

    @classmethod
    def detect_format(cls, image: Image.Image) -> str:
        """Lower-case format token of a decoded image, or 'unknown'."""
        fmt = (image.format or 'unknown').lower()
        return cls.FORMAT_ALIASES.get(fmt, fmt)

    @classmethod
    def resolve_format(cls, requested: Optional[str], detected: str) -> str:
        """
        Pick the encoder for a requested format token.

        'original' means the detected source format. Unknown or unavailable
        formats fall back to JPEG.
        """
        fmt = (requested or 'original').strip().lower()
        if fmt == 'original':
            fmt = detected
        fmt = cls.FORMAT_ALIASES.get(fmt, fmt)
        if fmt not in cls.FORMAT_CONFIG:
            return 'jpeg'
        if fmt == 'avif' and not AVIF_AVAILABLE:
            return 'jpeg'
        return fmt

    def _encode(self, image: Image.Image, quality: int, format_type: str) -> bytes:
        """Encode an image with the format's settings and return the bytes."""
        config = self.FORMAT_CONFIG[format_type]

        img = image
        if img.mode not in config['modes']:
            has_alpha = img.mode in ('RGBA', 'LA', 'PA') or 'transparency' in img.info
            target = config['convert_to'] if has_alpha else 'RGB'
            if target not in config['modes']:
                target = 'RGB'
            img = img.convert(target)

        buffer = io.BytesIO()
        img.save(buffer, format=config['pil_format'], **config['save_kwargs'](quality))
        return buffer.getvalue()

    def compress_bytes(
        self,
        data: bytes,
        filename: str = 'image',
        quality: Any = DEFAULT_QUALITY,
        output_format: Optional[str] = 'original'
    ) -> CompressionResult:
        """
        Compress raw image bytes.

        Args:
            data: Raw bytes of the uploaded image
            filename: Original file name, echoed back in the result
            quality: Encoder quality; normalized to 10-100 (default 80)
            output_format: 'original', 'jpeg', 'png', 'webp' or 'avif'

        Returns:
            CompressionResult describing the original and the encoded output

        Raises:
            ValueError: if no data was given
            PIL.UnidentifiedImageError: if the bytes are not a decodable image
        """
        if not data:
            raise ValueError("No image data to compress")

        quality = normalize_quality(quality)
        original_size = len(data)

        with Image.open(io.BytesIO(data)) as image:
            image.load()
            original_format = self.detect_format(image)
            original_width, original_height = image.size
            format_type = self.resolve_format(output_format, original_format)

            self._log(
                f"Compressing {filename}: {format_size(original_size)} "
                f"{original_format} -> {format_type} at quality {quality}"
            )
            compressed_bytes = self._encode(image, quality, format_type)

        with Image.open(io.BytesIO(compressed_bytes)) as encoded:
            compressed_width, compressed_height = encoded.size

        compressed_size = len(compressed_bytes)
        ratio = round((1 - compressed_size / original_size) * 100, 2)

        self._log(f"  Result: {format_size(compressed_size)} ({ratio}% smaller)")

        return CompressionResult(
            original=ImageInfo(
                name=filename,
                size=original_size,
                width=original_width,
                height=original_height,
                format=original_format,
            ),
            compressed=CompressedImage(
                size=compressed_size,
                width=compressed_width,
                height=compressed_height,
                format=format_type,
                data_uri=encode_data_uri(compressed_bytes, f"image/{format_type}"),
            ),
            compression_ratio=ratio,
        )
