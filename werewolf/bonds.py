"""Bonded-fate registry: who follows whom into death.

Each player holds at most one partner per bond kind. Twins and lovers are
mutual; a Virginia Woolf link is one-way (the linker's death takes the
linked player, not the other way round).
"""

from typing import Optional

from werewolf.rules import BondKind
from werewolf.state import GameState

MUTUAL_BONDS = frozenset({BondKind.TWIN, BondKind.LOVER})


def partner(state: GameState, player_id: str, kind: BondKind) -> Optional[str]:
    """Return the partner bound to player_id by kind, or None."""
    return state.bonds.get(player_id, {}).get(kind)


def partners(state: GameState, player_id: str) -> list[tuple[BondKind, str]]:
    """Return every (kind, partner_id) the player's death pulls along."""
    return list(state.bonds.get(player_id, {}).items())


def can_bind(state: GameState, kind: BondKind, a: str, b: str) -> bool:
    if a == b or partner(state, a, kind) is not None:
        return False
    if kind in MUTUAL_BONDS and partner(state, b, kind) is not None:
        return False
    return True


def bind(state: GameState, kind: BondKind, a: str, b: str) -> None:
    """Record a bond (mutates state). Raises ValueError if either side is already bound."""
    if not can_bind(state, kind, a, b):
        raise ValueError(f"cannot bind {a} and {b} as {kind.value}")
    state.bonds.setdefault(a, {})[kind] = b
    if kind in MUTUAL_BONDS:
        state.bonds.setdefault(b, {})[kind] = a


def lovers(state: GameState) -> list[tuple[str, str]]:
    """Return each lover pair once."""
    pairs = []
    for pid, links in state.bonds.items():
        other = links.get(BondKind.LOVER)
        if other is not None and pid < other:
            pairs.append((pid, other))
    return pairs
