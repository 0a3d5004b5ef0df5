"""
Output generation modules.
"""

from .image_json import ImageJson, SegmentEntry, LabelEntry

__all__ = ['ImageJson', 'SegmentEntry', 'LabelEntry']
