"""
Amendment size measurement.

Components:
- Text Diff: non-whitespace characters changed between two revisions
- Amendment Size: which revision each legislative stage is compared with
"""
from .text_diff import TextDiffSizeCalculator
from .amendment_size import (
    Amendment,
    AmendmentSizeCalculator,
    LegislativeRecord,
    ProcedureType,
)

__all__ = [
    "TextDiffSizeCalculator",
    "Amendment",
    "AmendmentSizeCalculator",
    "LegislativeRecord",
    "ProcedureType",
]
