class MdTreeError(Exception):
    """Base class for errors raised by mdtree."""


class InputError(MdTreeError):
    """The input could not be decoded as UTF-8 text."""


class StructureError(MdTreeError):
    """Nesting exceeded the structural depth cap."""

    def __init__(self, depth: int, limit: int, line: int = None):
        self.depth = depth
        self.limit = limit
        self.line = line
        where = f" at line {line + 1}" if line is not None else ""
        super().__init__(f"Nesting depth {depth} exceeds the limit of {limit}{where}")


class RenderError(MdTreeError):
    """The markdown renderer failed."""
