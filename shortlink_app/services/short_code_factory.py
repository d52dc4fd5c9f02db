"""
Factory for creating short code generation strategies.
Uses caching to avoid creating multiple instances.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from shortlink_app.services.short_code_strategies import (
    ShortCodeStrategy,
    RandomShortCodeStrategy,
    Base62ShortCodeStrategy
)
from shortlink_app.config import settings


class ShortCodeStrategyType(Enum):
    """Available short code generation strategies"""
    RANDOM = "random"
    BASE62 = "base62"


class ShortCodeFactory:
    """Factory for creating short code generation strategies with caching"""

    _instances: Dict[Tuple[ShortCodeStrategyType, int], ShortCodeStrategy] = {}

    @classmethod
    def create_strategy(
        cls,
        strategy_type: Optional[ShortCodeStrategyType] = None,
        length: Optional[int] = None
    ) -> ShortCodeStrategy:
        """
        Create or return cached short code generation strategy.

        Args:
            strategy_type: Type of strategy to create.
                          If None, uses value from settings.
            length: Code length. If None, uses settings.short_code_length.

        Returns:
            A cached instance of a ShortCodeStrategy

        Raises:
            ValueError: If strategy_type is unknown
        """
        if strategy_type is None:
            strategy_type = ShortCodeStrategyType(settings.short_code_strategy)
        if length is None:
            length = settings.short_code_length

        cache_key = (strategy_type, length)
        if cache_key in cls._instances:
            return cls._instances[cache_key]

        if strategy_type == ShortCodeStrategyType.RANDOM:
            instance = RandomShortCodeStrategy(length=length)
        elif strategy_type == ShortCodeStrategyType.BASE62:
            instance = Base62ShortCodeStrategy(length=length)
        else:
            raise ValueError(f"Unknown strategy type: {strategy_type}")

        cls._instances[cache_key] = instance
        return instance
