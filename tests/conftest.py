import pathlib

import pytest

from mdtree import ParserConfig, parse


@pytest.fixture
def top_dir() -> pathlib.Path:
    return pathlib.Path(__file__).resolve().absolute().parent


@pytest.fixture
def files_dir(top_dir):
    return (top_dir / ".." / "files").resolve().absolute()


@pytest.fixture
def parse_md():
    """Parse dedented markdown with the default pandoc renderer."""

    def _parse(text: str, **config):
        return parse(text, ParserConfig(**config) if config else None)

    return _parse


class UpperRenderer:
    """Renderer stand-in that wraps each fragment in a paragraph, upper cased."""

    def __init__(self):
        self.calls = []

    def render_many(self, fragments):
        self.calls.append(list(fragments))
        return [f"<p>{f.upper()}</p>" for f in fragments]


@pytest.fixture
def upper_renderer():
    return UpperRenderer()
