"""
Shared fixtures for the test suite.
"""

import asyncio
import io

import numpy as np
from PIL import Image

from imgsqueeze.compressor import CompressedImage, CompressionResult, ImageInfo
from imgsqueeze.utils import encode_data_uri


def create_test_image(size=(200, 150), fmt="PNG", mode="RGB"):
    """Create an encoded test image with a gradient plus some noise."""
    width, height = size
    img_array = np.zeros((height, width, 3), dtype=np.uint8)

    # Add gradient
    for i in range(height):
        img_array[i, :, 0] = int(255 * i / height)
    for j in range(width):
        img_array[:, j, 1] = int(255 * j / width)

    # Add some random variation
    noise = np.random.randint(0, 50, (height, width, 3), dtype=np.uint8)
    img_array = np.clip(img_array.astype(int) + noise.astype(int), 0, 255).astype(np.uint8)

    img = Image.fromarray(img_array)
    if mode != "RGB":
        img = img.convert(mode)

    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def make_result(name, original_size, compressed_size, fmt="jpeg", payload=None):
    """Build a CompressionResult without running an encoder."""
    payload = payload if payload is not None else b"x" * compressed_size
    return CompressionResult(
        original=ImageInfo(name=name, size=original_size, width=10, height=10, format=fmt),
        compressed=CompressedImage(
            size=compressed_size,
            width=10,
            height=10,
            format=fmt,
            data_uri=encode_data_uri(payload, f"image/{fmt}"),
        ),
        compression_ratio=round((1 - compressed_size / original_size) * 100, 2),
    )


class FakeBackend:
    """Backend returning canned results; names listed in `failures` raise."""

    def __init__(self, sizes=None, failures=None, fmt="jpeg"):
        self.sizes = sizes or {}
        self.failures = failures or {}
        self.fmt = fmt
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def compress(self, data, filename, quality, output_format, mime_type="application/octet-stream"):
        self.calls.append((filename, quality, output_format))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if filename in self.failures:
                raise self.failures[filename]
            compressed_size = self.sizes.get(filename, max(len(data) // 2, 1))
            return make_result(filename, len(data), compressed_size, self.fmt)
        finally:
            self.in_flight -= 1
