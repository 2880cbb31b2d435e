from .source import SourceLines, extract_source
from .text_width import display_width, pad_to_width

__all__ = [
    "SourceLines",
    "display_width",
    "extract_source",
    "pad_to_width",
]
