"""Engine configuration and precedence-aware loading."""

from option_strategy_engine.config.loader import load_config_with_precedence
from option_strategy_engine.config.settings import EngineSettings, load_settings

__all__ = ["EngineSettings", "load_config_with_precedence", "load_settings"]
