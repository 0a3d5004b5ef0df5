"""
Shared builders for synthetic GameCube binaries and linker maps.
"""

import struct

import pytest

from gamecube_loader.formats.dol import DOL
from gamecube_loader.formats.dol_structures import DolHeader, DOL_HEADER_SIZE
from gamecube_loader.formats.rel_structures import REL_HEADER_SIZES, R_DOLPHIN_END


def build_dol(text=(), data=(), bss=(0, 0), entry=None):
    """
    Assemble a DOL image.

    Args:
        text: (address, payload) pairs for the text slots
        data: (address, payload) pairs for the data slots
        bss: (address, size)
        entry: Entry point, defaults to the first text address
    """
    header = DolHeader()
    body = bytearray()
    offset = DOL_HEADER_SIZE

    for i, (address, payload) in enumerate(text):
        header.text_offsets[i] = offset
        header.text_addresses[i] = address
        header.text_sizes[i] = len(payload)
        body += payload
        offset += len(payload)

    for i, (address, payload) in enumerate(data):
        header.data_offsets[i] = offset
        header.data_addresses[i] = address
        header.data_sizes[i] = len(payload)
        body += payload
        offset += len(payload)

    header.bss_address, header.bss_size = bss
    if entry is None:
        entry = text[0][0] if text else 0
    header.entry_point = entry
    return DOL.pack_header(header) + bytes(body)


def build_rel(sections, version=3, module_id=1, bss_section=0, bss_size=0,
              align=8, bss_align=8, imports=()):
    """
    Assemble a REL module.

    Args:
        sections: ("text", payload), ("data", payload), ("bss", length)
            or ("empty",) entries in table order
        imports: (module_id, [(offset, type, section, addend), ...]) pairs;
            each relocation list is terminated automatically
    """
    header_size = REL_HEADER_SIZES[version]
    table_offset = header_size
    out = bytearray(header_size + len(sections) * 8)

    entries = []
    for entry in sections:
        kind = entry[0]
        if kind in ("text", "data"):
            while len(out) % 4:
                out.append(0)
            offset = len(out)
            out += entry[1]
            flags = offset | (1 if kind == "text" else 0)
            entries.append((flags, len(entry[1])))
        elif kind == "bss":
            entries.append((0, entry[1]))
        else:
            entries.append((0, 0))

    for i, (flags, length) in enumerate(entries):
        struct.pack_into('>2I', out, table_offset + i * 8, flags, length)

    import_offset = import_size = relocation_offset = 0
    if imports:
        while len(out) % 4:
            out.append(0)
        import_offset = len(out)
        import_size = len(imports) * 8
        out += bytes(import_size)
        relocation_offset = len(out)
        for i, (imported, relocations) in enumerate(imports):
            struct.pack_into('>2I', out, import_offset + i * 8, imported, len(out))
            for relocation in list(relocations) + [(0, R_DOLPHIN_END, 0, 0)]:
                out += struct.pack('>HBBI', *relocation)

    fields = [
        module_id, 0, 0, len(sections), table_offset, 0, 0, version,
        bss_size, relocation_offset, import_offset, import_size,
    ]
    struct.pack_into('>12I4B3I', out, 0, *fields, 0, 0, 0, bss_section, 0, 0, 0)
    if version >= 2:
        struct.pack_into('>2I', out, 0x40, align, bss_align)
    if version >= 3:
        struct.pack_into('>I', out, 0x48, 0)
    return bytes(out)


SAMPLE_MAP = """\
.text section layout
  Starting        Virtual
  address  Size   address
  -----------------------
  00000010 000008 00000010  4 func_a 	a.o
  00000018 000004 00000018  1 .text 	a.o
  00000020 000000 00000020    entry of func_b 	a.o
.data section layout
  Starting        Virtual
  address  Size   address
  -----------------------
  00000000 000004 00000000  4 data_b 	lib/b.o
  zzzzzzzz 000004 00000004  4 broken 	lib/b.o
.bss section layout
  Starting        Virtual
  address  Size   address
  -----------------------
  00000008 000004 00000008  4 bss_c 	c.o
.ctors section layout
  Starting        Virtual
  address  Size   address
  -----------------------
  00000000 000004 00000000  4 ctor_d 	d.o


Memory map:
                   Starting Size     File
                   address           Offset
          .text    00000000 00000100 00000100
          .data    00000000 00000040 00000200
           .bss    00000000 00000020 00000000
         .ctors    00000000 00000010 00000300
"""


SCENARIO_MAP = """\
.text section layout
  Starting        Virtual
  address  Size   address
  -----------------------
  00000000 000010 80000100 4 foo bar.o

Memory map:
                   Starting Size     File
                   address           Offset
  init 00000100 00000020 00000000
  text 00000120 00000200 00000020
"""


DOL_MAP = """\
.text section layout
  Starting        Virtual
  address  Size   address
  -----------------------
  00000000 000020 80003100  4 __start 	os.a
  00000000 000010 80003200  4 main 	main.o

Memory map:
                   Starting Size     File
                   address           Offset
          .text    80003100 00000120 00000100
"""


@pytest.fixture
def dol_bytes():
    """A DOL with two text sections, one data section and a bss range."""
    return build_dol(
        text=[(0x80003100, b'\x60\x00\x00\x00' * 8), (0x80003200, b'\x4e\x80\x00\x20' * 4)],
        data=[(0x80004000, bytes(range(0x20)))],
        bss=(0x80004020, 0x40),
        entry=0x80003100,
    )


@pytest.fixture
def rel_bytes():
    """A version 3 REL with text, data and bss plus one import."""
    return build_rel(
        [
            ("empty",),
            ("text", b'\x4e\x80\x00\x20' * 4),
            ("data", b'\x01\x02\x03\x04\x05\x06'),
            ("bss", 0x30),
        ],
        bss_section=3,
        bss_size=0x30,
        imports=[(0, [(0x10, 1, 1, 0x80003100)])],
    )
