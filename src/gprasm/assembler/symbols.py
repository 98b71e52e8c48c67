"""
Symbol table and local label scoping.

Labels are case-sensitive. A label starting with an uppercase letter opens
a scope: a local label (``.loop``) that follows ``Main:`` is stored as
``Main.loop``. Lowercase labels are ordinary globals and leave the scope
unchanged, so helpers can sit between a local label and its references.
A local label before any scope-opening label keeps its bare name. Both
passes qualify names with ``LabelScope`` so definitions and references
agree.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from gprasm.errors import (
    InternalError,
    DuplicateSymbolError,
    SourceLocation,
    UndefinedSymbolError,
)


# =============================================================================
# Symbol Table Entry
# =============================================================================

@dataclass(frozen=True)
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Qualified symbol name
        address: Address the label was defined at
        location: Where the label was defined
    """
    name: str
    address: int
    location: Optional[SourceLocation] = None


# =============================================================================
# Local Label Scope
# =============================================================================

def opens_scope(label: str) -> bool:
    """Check whether a label definition starts a new local label scope."""
    return label[:1].isupper()


class LabelScope:
    """
    Tracks the current scope-opening label while walking the line stream.

        scope = LabelScope()
        scope.enter("Main")          # Main:
        scope.enter("helper")        # helper: (scope unchanged)
        scope.qualify(".loop")       # -> "Main.loop"
    """

    def __init__(self):
        self._parent = ""

    @property
    def parent(self) -> str:
        return self._parent

    def enter(self, label: str) -> str:
        """Qualify a label definition, updating the scope for uppercase labels."""
        if opens_scope(label):
            self._parent = label
        return self.qualify(label)

    def qualify(self, name: str) -> str:
        """Qualify a label reference in the current scope."""
        if name.startswith("."):
            return f"{self._parent}{name}"
        return name


# =============================================================================
# Symbol Table
# =============================================================================

class SymbolTable:
    """
    Maps qualified label names to addresses.

    Written during the first pass, then frozen; the second pass only
    reads from it.
    """

    def __init__(self):
        self._symbols: dict[str, Symbol] = {}
        self._frozen = False

    def define(self, name: str, address: int, location: Optional[SourceLocation] = None,
               source_line: Optional[str] = None) -> Symbol:
        """
        Define a label.

        Raises:
            DuplicateSymbolError: If the name is already defined
        """
        if self._frozen:
            raise InternalError(f"symbol table is frozen, cannot define '{name}'")

        if name in self._symbols:
            raise DuplicateSymbolError(
                name,
                location=location,
                original_location=self._symbols[name].location,
                source_line=source_line,
            )

        symbol = Symbol(name, address, location)
        self._symbols[name] = symbol
        return symbol

    def resolve(self, name: str, location: Optional[SourceLocation] = None,
                source_line: Optional[str] = None) -> int:
        """
        Look up the address of a label.

        Raises:
            UndefinedSymbolError: With similar names as suggestions
        """
        symbol = self._symbols.get(name)
        if symbol is None:
            raise UndefinedSymbolError(
                name,
                location=location,
                source_line=source_line,
                similar_symbols=self.find_similar(name),
            )
        return symbol.address

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def as_dict(self) -> dict[str, int]:
        """Return ``{name: address}`` sorted by name."""
        return {name: self._symbols[name].address for name in sorted(self._symbols)}

    def find_similar(self, name: str) -> list[str]:
        """
        Find symbols with similar names for error hints.

        Uses simple edit distance heuristic.
        """
        name_lower = name.lower()
        similar = []

        for sym in sorted(self._symbols):
            sym_lower = sym.lower()
            if (
                sym_lower == name_lower or
                abs(len(sym) - len(name)) <= 1 and
                _edit_distance(name_lower, sym_lower) <= 2
            ):
                similar.append(sym)

        return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(
                    distances[j],
                    distances[j + 1],
                    new_distances[-1],
                ))
        distances = new_distances

    return distances[-1]
