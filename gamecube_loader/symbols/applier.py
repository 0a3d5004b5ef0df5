"""
Symbol applier.

Creates one label per recovered symbol, grouped into a namespace named
after the object file that defined it.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..host import Label, SymbolStore
from .map_parser import Diagnostic, SymbolInfo

logger = logging.getLogger(__name__)


def namespace_for_container(container: str) -> str:
    """
    Derive a namespace name from an object file path.

    The extension of the final path segment is dropped: "bar.o" -> "bar",
    "lib/bar.o" -> "lib/bar". Dots in directory names are kept.
    """
    segment_start = max(container.rfind('/'), container.rfind('\\')) + 1
    dot = container.rfind('.')
    if dot > segment_start:
        return container[:dot]
    return container


@dataclass
class ApplyResult:
    """Outcome of applying a batch of symbols."""
    labels: List[Label] = field(default_factory=list)
    skipped: List[SymbolInfo] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


class SymbolApplier:
    """Turns SymbolInfo records into namespaced labels."""

    def __init__(self, store: SymbolStore):
        if store is None:
            raise ValueError("A symbol store is required")
        self.store = store

    def _resolve_namespace(self, symbol: SymbolInfo, result: ApplyResult) -> Optional[str]:
        name = namespace_for_container(symbol.container)
        namespace = self.store.ensure_namespace(name)
        if namespace is None:
            message = f"An error occurred while creating a namespace for: {symbol.container}"
            logger.error(message)
            result.diagnostics.append(Diagnostic(0, symbol.container, message, logging.ERROR))
        return namespace

    def apply(self, symbols: Iterable[SymbolInfo]) -> ApplyResult:
        """
        Create labels for every non-placeholder symbol.

        Namespace failures fall back to the global namespace; label failures
        skip the symbol. Neither stops the batch.
        """
        result = ApplyResult()
        for symbol in symbols:
            if symbol.is_placeholder:
                continue

            namespace = self._resolve_namespace(symbol, result)
            if not self.store.create_label(symbol.virtual_address, symbol.name, namespace):
                message = (
                    f"An error occurred when attempting to load symbol: {symbol.name} "
                    f"at 0x{symbol.virtual_address:08x}"
                )
                logger.error(message)
                result.diagnostics.append(Diagnostic(0, symbol.name, message, logging.ERROR))
                result.skipped.append(symbol)
                continue

            result.labels.append(Label(symbol.virtual_address, symbol.name, namespace))

        logger.info(f"Applied {len(result.labels)} symbols, skipped {len(result.skipped)}")
        return result
