"""
GameCube Loader
A tool for loading Nintendo GameCube DOL and REL binaries and applying
CodeWarrior linker map symbols to them.
"""

__version__ = "0.1.0"

from .config import Config
from .host import AddressSpace, MemoryProgram, SegmentSink, SymbolStore
from .loader import (
    BinaryFormat, GameCubeLoader, LoadCancelledError, LoadResult, UnsupportedFormatError,
    load_file, sniff,
)

__all__ = [
    'Config', 'AddressSpace', 'MemoryProgram', 'SegmentSink', 'SymbolStore',
    'BinaryFormat', 'GameCubeLoader', 'LoadCancelledError', 'LoadResult',
    'UnsupportedFormatError', 'load_file', 'sniff', '__version__',
]
