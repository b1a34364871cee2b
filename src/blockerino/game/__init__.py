"""Game session engine for Blockerino.

Exports the core engine and supporting classes:
- Board: grid + bitmask, placement and line clearing
- Piece / CATALOG: polyomino pieces and the shape catalog
- PieceBag: weighted random bag of upcoming pieces
- ScoringRules: per-placement score and combo bookkeeping
- PowerUpEngine: board and hand power-up effects
- GameSession: Initial -> InProgress -> GameOver state machine
- SessionSnapshot: save/restore contract
"""

from .bag import BagConfig, PieceBag
from .board import Board, ClearedCell, LineClearResult, LinePreview
from .errors import BagStateInconsistent, CorruptedSnapshot, GameError, InvalidPlacement, PowerUpUnavailable
from .events import EventBus, LineClearEvent
from .grid import Cell, Grid
from .inventory import InMemoryInventory, Inventory
from .modes import MODE_CONFIGS, STORY_LEVELS, GameMode, ModeConfig, StoryLevel, mode_config, story_level
from .pieces import CATALOG, PALETTE, TIERS, WILD_COLOR, Piece, Tier
from .powerups import PowerUpEngine, PowerUpResult, PowerUpType
from .rules import ScoreUpdate, ScoringRules
from .session import GameSession, PlacementOutcome, PowerUpOutcome
from .snapshot import SessionSnapshot, snapshot_key
from .state import GameOver, InProgress, Initial, SessionState, StoryResult
from .store import JsonFileStore, MemoryStore, SnapshotStore

__all__ = [
    "BagConfig",
    "PieceBag",
    "Board",
    "ClearedCell",
    "LineClearResult",
    "LinePreview",
    "BagStateInconsistent",
    "CorruptedSnapshot",
    "GameError",
    "InvalidPlacement",
    "PowerUpUnavailable",
    "EventBus",
    "LineClearEvent",
    "Cell",
    "Grid",
    "InMemoryInventory",
    "Inventory",
    "MODE_CONFIGS",
    "STORY_LEVELS",
    "GameMode",
    "ModeConfig",
    "StoryLevel",
    "mode_config",
    "story_level",
    "CATALOG",
    "PALETTE",
    "TIERS",
    "WILD_COLOR",
    "Piece",
    "Tier",
    "PowerUpEngine",
    "PowerUpResult",
    "PowerUpType",
    "ScoreUpdate",
    "ScoringRules",
    "GameSession",
    "PlacementOutcome",
    "PowerUpOutcome",
    "SessionSnapshot",
    "snapshot_key",
    "GameOver",
    "InProgress",
    "Initial",
    "SessionState",
    "StoryResult",
    "JsonFileStore",
    "MemoryStore",
    "SnapshotStore",
]
