"""
Program image construction.
"""

from .segment import Segment
from .builder import ProgramImageBuilder, SegmentConflictError, align_up

__all__ = ['Segment', 'ProgramImageBuilder', 'SegmentConflictError', 'align_up']
