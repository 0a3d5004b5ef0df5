"""
Executable format parsers.

Supports:
- DOL (GameCube/Wii boot executables)
- REL (relocatable modules), plain or Yaz0 compressed
"""

from .dol import DOL
from .rel import REL
from .yaz0 import CorruptDataError, is_compressed, compress, decompress
from .dol_structures import *
from .rel_structures import *

__all__ = ['DOL', 'REL', 'CorruptDataError', 'is_compressed', 'compress', 'decompress']
