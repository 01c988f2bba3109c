"""
Local adaptive thresholding of a luminance raster.

The image is cut into square blocks. Every block gets a black point (its mean
luminance, or a guess derived from its neighbours when the block is flat) and
every pixel is compared with the average black point of the 5 x 5 blocks
around its own block.
"""

import numpy as np

from errors import BinarizationFailed

WINDOW = 5


class BinaryBitmap:
    '''Black/white raster, indexed [y, x]; True is black.'''

    def __init__(self, bits):
        bits = np.array(bits, dtype=bool)
        if bits.ndim != 2:
            raise ValueError("BinaryBitmap needs a 2D array")
        bits.setflags(write=False)
        self.bits = bits

    @property
    def width(self) -> int:
        return self.bits.shape[1]

    @property
    def height(self) -> int:
        return self.bits.shape[0]

    def __getitem__(self, index):
        return self.bits[index]

    def is_black(self, x: int, y: int) -> bool:
        '''Pixels outside the bitmap read as white'''
        if 0 <= x < self.width and 0 <= y < self.height:
            return bool(self.bits[y, x])
        return False

    def row(self, y: int) -> np.ndarray:
        return self.bits[y]

    def column(self, x: int) -> np.ndarray:
        return self.bits[:, x]


def _black_points(luminance, block_size, min_dynamic_range):
    height, width = luminance.shape
    sub_height = -(-height // block_size)
    sub_width = -(-width // block_size)
    padded = np.pad(
        luminance,
        ((0, sub_height * block_size - height), (0, sub_width * block_size - width)),
        mode="edge",
    ).astype(np.int32)
    blocks = padded.reshape(sub_height, block_size, sub_width, block_size)
    sums = blocks.sum(axis=(1, 3))
    mins = blocks.min(axis=(1, 3))
    maxs = blocks.max(axis=(1, 3))

    points = sums // (block_size * block_size)
    flat = (maxs - mins) <= min_dynamic_range
    # a flat block is assumed to be white unless its neighbours say otherwise
    points[flat] = mins[flat] // 2
    for y, x in zip(*np.nonzero(flat)):
        if y > 0 and x > 0:
            neighbours = (points[y - 1, x] + 2 * points[y, x - 1] + points[y - 1, x - 1]) // 4
            if mins[y, x] < neighbours:
                points[y, x] = neighbours
    return points


def binarize(luminance, block_size=8, min_dynamic_range=24) -> BinaryBitmap:
    '''Classify every pixel of a (height, width) luminance array as black or white'''
    luminance = np.asarray(luminance)
    if luminance.ndim != 2 or luminance.size == 0:
        raise ValueError("Luminance must be a non-empty 2D array")
    if int(luminance.max()) - int(luminance.min()) <= min_dynamic_range:
        raise BinarizationFailed(
            f"Contrast too low to binarize (range {int(luminance.max()) - int(luminance.min())})"
        )

    points = _black_points(luminance, block_size, min_dynamic_range)
    sub_height, sub_width = points.shape
    half = WINDOW // 2
    padded = np.pad(points, half, mode="edge")
    window = sum(
        padded[dy:dy + sub_height, dx:dx + sub_width]
        for dy in range(WINDOW)
        for dx in range(WINDOW)
    )
    thresholds = window // (WINDOW * WINDOW)

    height, width = luminance.shape
    per_pixel = np.repeat(np.repeat(thresholds, block_size, axis=0), block_size, axis=1)
    return BinaryBitmap(luminance <= per_pixel[:height, :width])
