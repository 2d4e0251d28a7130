"""Shared fixtures: synthetic images and a deterministic embedding provider."""

from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from drawing_grader.io.models import ImageSample


class GridEmbeddingProvider:
    """Embeds an image as its coarsely sampled RGB values."""

    def __init__(self, input_size=32, stride=4):
        self.input_size = input_size
        self.stride = stride
        self.calls = 0

    def infer(self, tensor):
        self.calls += 1
        return np.asarray(tensor)[0, :: self.stride, :: self.stride, :].ravel()


class FailingProvider:
    input_size = 32

    def infer(self, tensor):
        raise RuntimeError("model crashed")


def noise_pixels(seed, size=(48, 40)):
    rng = np.random.default_rng(seed)
    height, width = size
    rgb = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    alpha = np.full((height, width, 1), 255, dtype=np.uint8)
    return np.concatenate([rgb, alpha], axis=2)


def solid_pixels(color, size=(32, 32)):
    height, width = size
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :] = color
    return pixels


def png_bytes(pixels):
    buffer = BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def provider():
    return GridEmbeddingProvider()


@pytest.fixture
def failing_provider():
    return FailingProvider()


@pytest.fixture
def noisy_sample():
    return ImageSample(noise_pixels(seed=1))


@pytest.fixture
def other_sample():
    return ImageSample(noise_pixels(seed=2))


@pytest.fixture
def image_files(tmp_path):
    """Write a reference and two distinct submissions as PNG files."""
    reference = tmp_path / "reference.png"
    reference.write_bytes(png_bytes(noise_pixels(seed=1)))
    same = tmp_path / "same.png"
    same.write_bytes(png_bytes(noise_pixels(seed=1)))
    different = tmp_path / "different.png"
    different.write_bytes(png_bytes(noise_pixels(seed=7)))
    return {"reference": reference, "same": same, "different": different}
