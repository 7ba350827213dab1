# smart2048/config.py
from dataclasses import dataclass, field
import logging
import os
import tomllib  # python >=3.11

logger = logging.getLogger(__name__)

# Tile values never merge once they reach this.
MAX_MERGE_VALUE = 2048

@dataclass
class SearchConfig:
    depth: int = 5
    use_pruning: bool = True
    eval_cache: bool = True
    cache_max_entries: int = 200_000
    verbose: bool = False  # print an info line after each search

@dataclass
class EvalConfig:
    # Empirically tuned; keep these exact.
    monotonicity_weight: float = 47.0
    empty_weight: float = 270.0
    merge_weight: float = 700.0
    sum_weight: float = 11.0
    max_tile_weight: float = 2000.0
    max_tile_adjacency_bonus: float = 1000.0
    stalemate_penalty: float = 200000.0
    monotonicity_power: float = 4.0
    sum_power: float = 3.5
    capped_sum_power: float = 2.5

@dataclass
class BoardConfig:
    size: int = 4
    max_merge_value: int = MAX_MERGE_VALUE
    four_probability: float = 0.1

@dataclass
class GameConfig:
    start_tiles: int = 2
    auto_spawn: bool = True
    max_auto_moves: int = 10000

@dataclass
class UIConfig:
    engine_name: str = "Smart2048"
    engine_author: str = "Medo"
    api_port: int = 8000
    api_max_depth: int = 8

@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    board: BoardConfig = field(default_factory=BoardConfig)
    game: GameConfig = field(default_factory=GameConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "eval", "board", "game", "ui"):
            target = getattr(cfg, section)
            for k, v in raw.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
                else:
                    logger.warning("Ignoring unknown config key %s.%s", section, k)
        if "log_level" in raw:
            cfg.log_level = str(raw["log_level"])
        return cfg


def configure_logging(level: str = None):
    """Set up root logging once for the CLI and API entry points."""
    logging.basicConfig(
        level=(level or CONFIG.log_level).upper(),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("SMART2048_CONFIG_TOML", "config.toml"))
# allow env override of depth for quick debugging
override_depth = os.environ.get("SMART2048_SEARCH_DEPTH")
if override_depth:
    try:
        CONFIG.search.depth = int(override_depth)
    except ValueError:
        logger.warning("Ignoring non-integer SMART2048_SEARCH_DEPTH=%r", override_depth)
