"""Game module for Tetromino RL.

Exports the rule engine and supporting classes:
- Pos, Grid, PlayField: geometry, cell matrices and the well
- BagSequence: seeded seven-piece bag stream
- Tetromino, TetrominoType: pieces with rotation state
- Settings, ScoringRules: fixed rule constants
- GameState, get_fresh_state: immutable snapshots
- reduce and the effect variants: the state transition function
"""

from .geometry import Pos
from .grid import Cell, Color, Grid, PlayField, clear_filled_rows, make_grid
from .randomizer import BagSequence, new_bag
from .pieces import Tetromino, TetrominoType, get_tetromino
from .rules import SCORING, SETTINGS, ScoringRules, Settings
from .state import GameState, get_fresh_state, get_ghost
from .core import (
    Effect,
    HardDrop,
    Hold,
    Pause,
    Restart,
    Rotate,
    SoftDrop,
    Tick,
    Translate,
    reduce,
    reduce_all,
    iter_states,
)

__all__ = [
    "Pos",
    "Cell",
    "Color",
    "Grid",
    "PlayField",
    "clear_filled_rows",
    "make_grid",
    "BagSequence",
    "new_bag",
    "Tetromino",
    "TetrominoType",
    "get_tetromino",
    "SCORING",
    "SETTINGS",
    "ScoringRules",
    "Settings",
    "GameState",
    "get_fresh_state",
    "get_ghost",
    "Effect",
    "HardDrop",
    "Hold",
    "Pause",
    "Restart",
    "Rotate",
    "SoftDrop",
    "Tick",
    "Translate",
    "reduce",
    "reduce_all",
    "iter_states",
]
