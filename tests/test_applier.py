"""Tests for applying recovered symbols to a symbol store."""

from typing import Optional

import pytest

from gamecube_loader.host import MemoryProgram, SymbolStore
from gamecube_loader.symbols import SymbolApplier, SymbolInfo, namespace_for_container


class RejectingStore(SymbolStore):
    """Store that refuses namespaces and selected label names."""

    def __init__(self, rejected_names=()):
        self.rejected_names = set(rejected_names)
        self.labels = []

    def ensure_namespace(self, name: str) -> Optional[str]:
        return None

    def create_label(self, address: int, name: str, namespace: Optional[str]) -> bool:
        if name in self.rejected_names:
            return False
        self.labels.append((address, name, namespace))
        return True


def _symbol(name, address, container='main.o', alignment=4):
    return SymbolInfo(name=name, container=container, virtual_address=address, alignment=alignment)


@pytest.mark.parametrize('container, expected', [
    ('bar.o', 'bar'),
    ('os.a', 'os'),
    ('lib/bar.o', 'lib/bar'),
    ('dir.v2/bar', 'dir.v2/bar'),
    ('C:\\build.out\\main.o', 'C:\\build.out\\main'),
    ('noext', 'noext'),
    ('.hidden', '.hidden'),
])
def test_namespace_for_container(container, expected):
    assert namespace_for_container(container) == expected


def test_apply_creates_namespaced_labels():
    program = MemoryProgram()
    result = SymbolApplier(program).apply([
        _symbol('main', 0x80003100, 'main.o'),
        _symbol('OSInit', 0x80004000, 'os.a'),
    ])

    assert [(l.name, l.namespace) for l in result.labels] == [('main', 'main'), ('OSInit', 'os')]
    assert program.namespaces == {'main', 'os'}
    assert program.labels_at(0x80004000)[0].qualified_name == 'os::OSInit'
    assert result.skipped == []
    assert result.diagnostics == []


def test_placeholders_are_not_applied():
    program = MemoryProgram()
    result = SymbolApplier(program).apply([
        _symbol('.text', 0x80003100, alignment=1),
        _symbol('main', 0x80003100),
    ])

    assert [l.name for l in result.labels] == ['main']
    assert program.find_label('.text', 'main') is None


def test_namespace_failure_falls_back_to_global():
    store = RejectingStore()
    result = SymbolApplier(store).apply([_symbol('main', 0x80003100)])

    assert store.labels == [(0x80003100, 'main', None)]
    assert result.labels[0].qualified_name == 'main'
    assert len(result.diagnostics) == 1
    assert 'namespace' in result.diagnostics[0].message


def test_label_failure_skips_symbol_and_continues():
    store = RejectingStore(rejected_names={'bad'})
    result = SymbolApplier(store).apply([
        _symbol('bad', 0x80003100),
        _symbol('good', 0x80003104),
    ])

    assert [s.name for s in result.skipped] == ['bad']
    assert [l.name for l in result.labels] == ['good']
    assert any('bad' in d.message for d in result.diagnostics)


def test_invalid_name_is_rejected_by_program():
    program = MemoryProgram()
    result = SymbolApplier(program).apply([_symbol('', 0x80003100)])
    assert len(result.skipped) == 1


def test_store_is_required():
    with pytest.raises(ValueError):
        SymbolApplier(None)
