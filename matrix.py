from PIL import Image

BLACK = 0
WHITE = 255


class ModuleMatrix:
    '''Square grid of modules, True is black.

    Instances are immutable; use flipped() to derive a modified copy.
    '''

    __slots__ = ("_rows",)

    def __init__(self, rows):
        rows = tuple(tuple(bool(module) for module in row) for row in rows)
        if any(len(row) != len(rows) for row in rows):
            raise ValueError("Module matrix must be square")
        object.__setattr__(self, "_rows", rows)

    def __setattr__(self, name, value):
        raise AttributeError("ModuleMatrix is immutable")

    @classmethod
    def from_rows(cls, rows):
        """
        Build a matrix from any nested iterable of truthy values, e.g. a list
        of lists or a 2D numpy array.
        """
        return cls(rows)

    @property
    def size(self) -> int:
        return len(self._rows)

    @property
    def rows(self):
        return self._rows

    def __getitem__(self, position):
        row, column = position
        return self._rows[row][column]

    def __eq__(self, other):
        if isinstance(other, ModuleMatrix):
            return self._rows == other._rows
        return NotImplemented

    def __hash__(self):
        return hash(self._rows)

    def __repr__(self):
        return f"ModuleMatrix(size={self.size})"

    def __str__(self):
        return "\n".join("".join("X " if module else "  " for module in row) for row in self._rows)

    def flipped(self, positions):
        '''Copy of the matrix with the modules at the given (row, column) positions inverted'''
        rows = [list(row) for row in self._rows]
        for row, column in positions:
            rows[row][column] = not rows[row][column]
        return ModuleMatrix(rows)

    def rotated(self, turns: int = 1):
        '''Copy rotated clockwise by 90 degrees, turns times'''
        rows = self._rows
        for _ in range(turns % 4):
            rows = tuple(zip(*rows[::-1]))
        return ModuleMatrix(rows)

    def to_image(self, width: int = 0, height: int = 0) -> Image.Image:
        """
        Render black modules on a white background.

        Each module becomes a square of the largest whole number of pixels that
        fits width x height; the symbol is centred on a canvas at least that
        large and at least one pixel per module.
        """
        size = self.size
        out_width = max(width, size)
        out_height = max(height, size)
        multiple = min(out_width // size, out_height // size)
        left = (out_width - size * multiple) // 2
        top = (out_height - size * multiple) // 2

        modules = Image.new("L", (size, size), WHITE)
        modules.putdata([BLACK if module else WHITE for row in self._rows for module in row])
        modules = modules.resize((size * multiple, size * multiple), Image.Resampling.NEAREST)

        image = Image.new("L", (out_width, out_height), WHITE)
        image.paste(modules, (left, top))
        return image
