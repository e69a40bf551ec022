import logging
from typing import List

from pydantic import BaseModel, Field

logger = logging.getLogger("mdtree")

PANDOC_FORMAT = "markdown-auto_identifiers-implicit_figures-smart"


class ParserConfig(BaseModel):
    """Settings for a single parse.

    Attributes:
        header_delimiter: Line that opens and closes the metadata header
        max_depth: Structural cap on open-item stack depth and block nesting
        pandoc_format: Pandoc reader format used to render markdown fragments
        pandoc_extra_args: Extra command line arguments passed to pandoc
    """

    header_delimiter: str = "---"
    max_depth: int = Field(default=64, ge=1)
    pandoc_format: str = PANDOC_FORMAT
    pandoc_extra_args: List[str] = Field(default_factory=lambda: ["--wrap=none"])

    model_config = {"frozen": True}
