"""
Configuration handling for the GameCube loader.

Keys in config.json are camelCase. Addresses are written as hex strings
("0x80500000"); -1 stays a plain number meaning "not set".
"""

from dataclasses import dataclass, fields as dataclass_fields
from typing import Any, Optional
import json
from pathlib import Path

# Fields stored as hex strings in config.json
ADDRESS_FIELDS = ('bss_address', 'rel_base_address', 'max_address')


@dataclass
class Config:
    """Configuration options for the GameCube loader."""

    # Reserved for resolving the modules a REL imports from
    load_dependencies: bool = True

    # Linker map options
    symbol_alignment: int = 32
    bss_address: int = -1  # -1: take the bss address from the loaded image

    # REL placement
    rel_base_address: int = 0x80500000

    # Address space
    max_address: int = 0xFFFFFFFF

    def __post_init__(self):
        if self.symbol_alignment <= 0:
            raise ValueError(f"symbolAlignment must be positive, got {self.symbol_alignment}")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a JSON file.

        Unknown keys are ignored; a missing file gives the defaults.

        Raises:
            ValueError: If a value is out of range
        """
        if path is None:
            path = Path(__file__).parent / 'config.json'

        if not path.exists():
            return cls()

        with open(path, 'r') as f:
            data = json.load(f)

        valid_fields = {f.name for f in dataclass_fields(cls)}
        options = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name in valid_fields:
                options[name] = _parse_value(value)

        return cls(**options)

    def save(self, path: Path) -> None:
        """Save configuration to a JSON file in the same layout as config.json."""
        data = {
            _camel_case(f.name): _format_value(f.name, getattr(self, f.name))
            for f in dataclass_fields(self)
        }

        with open(path, 'w') as f:
            json.dump(data, f, indent=2)


def _snake_case(key: str) -> str:
    return ''.join(f'_{c.lower()}' if c.isupper() else c for c in key).lstrip('_')


def _camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(word.capitalize() for word in rest)


def _parse_value(value: Any) -> Any:
    """Addresses may be written as hex strings ("0x80500000")."""
    if isinstance(value, str) and value.lower().startswith(('0x', '-0x')):
        return int(value, 16)
    return value


def _format_value(name: str, value: Any) -> Any:
    if name in ADDRESS_FIELDS and isinstance(value, int) and value >= 0:
        return f"0x{value:08X}"
    return value
