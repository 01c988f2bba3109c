"""
Locating an Aztec symbol in a binary bitmap and reading its modules.

The locator scans pixel rows from the middle of the image outwards for the
1:1:1:1:1:1:1 run signature of the bullseye, confirms it along the column
through the candidate centre, then checks the finder rings module by module.
The orientation marks fix the rotation, and the mode message next to the
finder pattern gives the symbol size. Only rotations by multiples of 90
degrees are supported.
"""

import math
from dataclasses import dataclass, replace

import numpy as np

import geometry
from binarizer import BinaryBitmap
from config import DEFAULT_CONFIG
from errors import SymbolNotFound
from matrix import ModuleMatrix

# a ring may have this many wrongly coloured modules
RING_TOLERANCE = 2
# and the twelve orientation modules this many
ORIENTATION_TOLERANCE = 2


@dataclass(frozen=True)
class FinderProbe:
    '''Where the symbol sits in the image.

    center_x/center_y are continuous pixel coordinates of the middle of the
    centre module, pitch_x/pitch_y the module size in pixels along the image
    axes. rotation is the number of clockwise quarter turns applied to the
    upright symbol.
    '''
    center_x: float
    center_y: float
    pitch_x: float
    pitch_y: float
    rotation: int
    compact: bool
    layers: int
    data_codewords: int


def _rotate(rotation, du, dv):
    if rotation == 0:
        return du, dv
    if rotation == 1:
        return -dv, du
    if rotation == 2:
        return -du, -dv
    return dv, -du


def _runs(line):
    '''Start, end and colour of each run of equal pixels'''
    line = np.asarray(line, dtype=np.int8)
    change = np.where(np.diff(line) != 0)[0] + 1
    starts = np.concatenate(([0], change))
    ends = np.concatenate((change, [len(line)]))
    return starts, ends, line[starts].astype(bool)


def _bullseye_runs(line, min_pitch):
    """
    Black runs that sit in the middle of seven runs of about equal width,
    with at least half a module of the next ring on either side.

    Returns (start, end, centre, module) for each.
    """
    starts, ends, colors = _runs(line)
    count = len(starts)
    if count < 9:
        return []
    widths = ends - starts
    centre = np.arange(4, count - 4)
    module = (ends[centre + 3] - starts[centre - 3]) / 7.0
    ok = colors[centre] & (module >= min_pitch)
    for offset in range(-3, 4):
        w = widths[centre + offset]
        ok &= (w >= 0.5 * module) & (w <= 1.5 * module)
    ok &= (widths[centre - 4] >= 0.5 * module) & (widths[centre + 4] >= 0.5 * module)
    return [
        (starts[t], ends[t], (starts[t] + ends[t]) / 2.0, m)
        for t, m in zip(centre[ok], module[ok])
    ]


def _run_through(candidates, index):
    for start, end, centre, module in candidates:
        if start <= index < end:
            return centre, module
    return None


class _Reader:
    '''Module lookup relative to a centre, in upright symbol coordinates'''

    def __init__(self, bits, center_x, center_y, pitch_x, pitch_y, rotation=0):
        self.bits = bits
        self.center_x = center_x
        self.center_y = center_y
        self.pitch_x = pitch_x
        self.pitch_y = pitch_y
        self.rotation = rotation

    def __call__(self, du, dv):
        ix, iy = _rotate(self.rotation, du, dv)
        x = math.floor(self.center_x + ix * self.pitch_x)
        y = math.floor(self.center_y + iy * self.pitch_y)
        height, width = self.bits.shape
        if 0 <= x < width and 0 <= y < height:
            return bool(self.bits[y, x])
        return False

    def ring_errors(self, d, black):
        if d == 0:
            return int(self(0, 0) != black)
        errors = 0
        for j in range(-d, d + 1):
            for du, dv in ((j, -d), (j, d), (-d, j), (d, j)):
                if self(du, dv) != black:
                    errors += 1
        # corners are visited twice
        for du, dv in ((-d, -d), (d, -d), (-d, d), (d, d)):
            if self(du, dv) != black:
                errors -= 1
        return errors


def _refine(line, index, pitch, radius):
    '''Centre and pitch measured over 2 * radius + 1 alternating runs, or None'''
    starts, ends, _ = _runs(line)
    t = int(np.searchsorted(ends, index, side="right"))
    if t - radius < 0 or t + radius >= len(starts):
        return None
    widths = (ends - starts)[t - radius:t + radius + 1]
    if np.any(widths < 0.5 * pitch) or np.any(widths > 1.5 * pitch):
        return None
    first, last = starts[t - radius], ends[t + radius]
    return (first + last) / 2.0, (last - first) / (2 * radius + 1.0)


def _probe_at(bits, center_x, center_y, pitch_x, pitch_y, refine=False) -> FinderProbe:
    reader = _Reader(bits, center_x, center_y, pitch_x, pitch_y)
    for d in range(0, 5):
        if reader.ring_errors(d, d % 2 == 0) > RING_TOLERANCE:
            raise SymbolNotFound(f"Finder ring {d} does not match")
    compact = (
        reader.ring_errors(5, False) > RING_TOLERANCE
        or reader.ring_errors(6, True) > RING_TOLERANCE
    )

    marks = geometry.orientation_marks(compact, 0)
    mismatches = []
    for rotation in range(4):
        reader.rotation = rotation
        mismatches.append(sum(reader(dc, dr) != black for dr, dc, black in marks))
    rotation = min(range(4), key=mismatches.__getitem__)
    if mismatches[rotation] > ORIENTATION_TOLERANCE:
        raise SymbolNotFound("Orientation marks not found")
    reader.rotation = rotation

    mode_bits = [int(reader(dc, dr)) for dr, dc in geometry.mode_message_positions(compact, 0)]
    layers, data_codewords = geometry.parse_mode_message(mode_bits, compact)
    probe = FinderProbe(center_x, center_y, pitch_x, pitch_y, rotation, compact, layers, data_codewords)

    if refine and not compact:
        # the centre row and column of a full symbol alternate all the way across
        radius = geometry.matrix_size(compact, layers) // 2 - 1
        row = _refine(bits[math.floor(center_y)], math.floor(center_x), pitch_x, radius)
        column = _refine(bits[:, math.floor(center_x)], math.floor(center_y), pitch_y, radius)
        if row is not None and column is not None:
            probe = replace(probe, center_x=row[0], pitch_x=row[1], center_y=column[0], pitch_y=column[1])
    return probe


def locate(bitmap: BinaryBitmap, config=DEFAULT_CONFIG) -> FinderProbe:
    '''Find the bullseye closest to the middle of the bitmap'''
    bits = bitmap.bits
    height, width = bits.shape
    min_pitch = config.min_module_pitch
    tried = set()
    for y in sorted(range(height), key=lambda r: abs(r - height // 2)):
        for _, _, cx, px in _bullseye_runs(bits[y], min_pitch):
            column = _run_through(_bullseye_runs(bits[:, math.floor(cx)], min_pitch), y)
            if column is None:
                continue
            cy, py = column
            row = _run_through(_bullseye_runs(bits[math.floor(cy)], min_pitch), math.floor(cx))
            if row is None:
                continue
            cx, px = row
            if not 0.5 <= px / py <= 2.0:
                continue
            key = (round(cx), round(cy))
            if key in tried:
                continue
            tried.add(key)
            try:
                return _probe_at(bits, cx, cy, px, py, refine=True)
            except SymbolNotFound:
                continue
    raise SymbolNotFound("No Aztec finder pattern found")


def probe_matrix(matrix: ModuleMatrix) -> FinderProbe:
    '''Probe a module matrix as if it were an image with one pixel per module'''
    bits = np.array(matrix.rows, dtype=bool).reshape(matrix.size, matrix.size)
    center = matrix.size // 2 + 0.5
    probe = _probe_at(bits, center, center, 1.0, 1.0)
    if geometry.matrix_size(probe.compact, probe.layers) != matrix.size:
        raise SymbolNotFound(
            f"Mode message announces a symbol of size "
            f"{geometry.matrix_size(probe.compact, probe.layers)}, matrix has {matrix.size}"
        )
    return probe


def sample_matrix(bitmap: BinaryBitmap, probe: FinderProbe, descriptor) -> ModuleMatrix:
    '''Read every module of the symbol, returning it upright'''
    size = descriptor.size
    center = size // 2
    rows, columns = np.indices((size, size))
    ix, iy = _rotate(probe.rotation, columns - center, rows - center)
    x = np.floor(probe.center_x + ix * probe.pitch_x).astype(int)
    y = np.floor(probe.center_y + iy * probe.pitch_y).astype(int)
    if x.min() < 0 or y.min() < 0 or x.max() >= bitmap.width or y.max() >= bitmap.height:
        raise SymbolNotFound("Symbol extends past the edge of the image")
    return ModuleMatrix.from_rows(bitmap.bits[y, x])


def sample(bitmap: BinaryBitmap, probe: FinderProbe, descriptor) -> list:
    '''Raw data layer bits in ring traversal order'''
    matrix = sample_matrix(bitmap, probe, descriptor)
    return [int(matrix[position]) for position in geometry.data_positions(descriptor)]
