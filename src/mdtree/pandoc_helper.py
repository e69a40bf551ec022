import os
import pathlib
import platform
import shutil
import sys

from .config import logger
from .exceptions import RenderError

_PANDOC_READY = False


def ensure_pandoc_path():
    """
    Make sure pypandoc can find a pandoc executable.

    Tries pypandoc's own lookup first, then ``pandoc`` on PATH, then the
    interpreter prefix (conda style installs).

    :return:
    """
    global _PANDOC_READY
    import pypandoc

    if _PANDOC_READY:
        return None

    try:
        pypandoc._ensure_pandoc_path()
        _PANDOC_READY = True
        return None
    except OSError:
        logger.debug("pypandoc could not find pandoc, attempting to locate it manually")

    pandoc_exe = shutil.which("pandoc")
    if pandoc_exe is not None:
        pandoc_path = pathlib.Path(pandoc_exe)
    elif platform.system() == "Windows":
        pandoc_path = pathlib.Path(sys.prefix) / "Library" / "bin" / "pandoc.exe"
    else:
        pandoc_path = pathlib.Path(sys.prefix) / "bin" / "pandoc"

    if not pandoc_path.exists():
        raise RenderError("Pandoc executable not found. Please install pandoc or pypandoc_binary.")

    os.environ["PYPANDOC_PANDOC"] = str(pandoc_path)
    pypandoc._ensure_pandoc_path()
    _PANDOC_READY = True
    return None
