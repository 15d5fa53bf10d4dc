from __future__ import annotations

from typing import Dict, List, Tuple

from .geometry import Pos

Offset = Tuple[int, int]

_JLSTZ_FLAT: List[Offset] = [(0, 0)] * 5
_JLSTZ_RIGHT: List[Offset] = [(0, 0), (1, 0), (1, -1), (0, 2), (1, 2)]
_JLSTZ_LEFT: List[Offset] = [(0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)]


def _jlstz(offsets: List[Offset]) -> Dict[str, List[Offset]]:
    return {name: list(offsets) for name in "JLSTZ"}


# Offset data per rotation state, written with y pointing up.
ROTATION_OFFSETS: Dict[int, Dict[str, List[Offset]]] = {
    0: {
        **_jlstz(_JLSTZ_FLAT),
        "I": [(0, 0), (-1, 0), (2, 0), (-1, 0), (2, 0)],
        "O": [(0, 0)],
    },
    1: {
        **_jlstz(_JLSTZ_RIGHT),
        "I": [(0, 0), (0, 1), (0, 1), (0, -1), (0, 2)],
        "O": [(0, -1)],
    },
    2: {
        **_jlstz(_JLSTZ_FLAT),
        "I": [(0, 0), (1, 0), (-2, 0), (1, 0), (-2, 0)],
        "O": [(-1, -1)],
    },
    3: {
        **_jlstz(_JLSTZ_LEFT),
        "I": [(0, 0), (0, -1), (0, -1), (0, 1), (0, -2)],
        "O": [(-1, 0)],
    },
}


def rotation_state_count() -> int:
    return len(ROTATION_OFFSETS)


def wrap_rotation_state(state: int, step: int) -> int:
    # Python's modulo already wraps negative steps into range
    return (state + step) % rotation_state_count()


def get_offsets(kind: str, source_state: int, target_state: int) -> List[Pos]:
    """Kick candidates for rotating `kind` from one state to another.

    Each candidate is the source entry minus the target entry, with y flipped
    so it points down like field rows. Order is the order they should be tried.
    """
    if source_state not in ROTATION_OFFSETS or target_state not in ROTATION_OFFSETS:
        raise ValueError(f"invalid rotation state {source_state} -> {target_state}")
    source = ROTATION_OFFSETS[source_state][kind]
    target = ROTATION_OFFSETS[target_state][kind]
    return [Pos(*a).minus(Pos(*b)).scale_y(-1) for a, b in zip(source, target)]
