"""
Tests for short code generation strategies.
"""
import string

import pytest

from shortlink_app.services.short_code_strategies import (
    RandomShortCodeStrategy,
    Base62ShortCodeStrategy
)
from shortlink_app.services.short_code_factory import (
    ShortCodeFactory,
    ShortCodeStrategyType
)

ALPHANUMERIC = set(string.ascii_letters + string.digits)


class TestRandomStrategy:
    """Test secrets.choice based strategy"""

    def test_default_length_is_eight(self):
        code = RandomShortCodeStrategy().generate()
        assert len(code) == 8

    def test_configurable_length(self):
        code = RandomShortCodeStrategy(length=12).generate()
        assert len(code) == 12

    def test_alphanumeric_only(self):
        strategy = RandomShortCodeStrategy()
        for _ in range(200):
            assert set(strategy.generate()) <= ALPHANUMERIC

    def test_codes_are_not_repeated(self):
        """1000 draws from 62^8 should never collide"""
        strategy = RandomShortCodeStrategy()
        codes = {strategy.generate() for _ in range(1000)}
        assert len(codes) == 1000

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            RandomShortCodeStrategy(length=0)


class TestBase62Strategy:
    """Test Base62 encoding of random bytes"""

    def test_fixed_length(self):
        strategy = Base62ShortCodeStrategy(length=8)
        for _ in range(200):
            assert len(strategy.generate()) == 8

    def test_alphanumeric_only(self):
        strategy = Base62ShortCodeStrategy(length=6)
        for _ in range(200):
            assert set(strategy.generate()) <= ALPHANUMERIC

    def test_not_sequential(self):
        strategy = Base62ShortCodeStrategy(length=8)
        codes = [strategy.generate() for _ in range(50)]
        assert codes != sorted(codes)
        assert len(set(codes)) == 50

    def test_base62_encode(self):
        strategy = Base62ShortCodeStrategy()
        assert strategy._base62_encode(0) == "0"
        assert strategy._base62_encode(61) == "Z"
        assert strategy._base62_encode(62) == "10"


class TestCodeValidation:
    @pytest.mark.parametrize("code", ["abc", "ABC123", "x9Y8z7"])
    def test_valid_codes(self, code):
        assert RandomShortCodeStrategy().is_valid_code(code)

    @pytest.mark.parametrize("code", ["", "ab-c", "a b", "ümlaut", "abc/"])
    def test_invalid_codes(self, code):
        assert not RandomShortCodeStrategy().is_valid_code(code)


class TestShortCodeFactory:
    """Test strategy factory"""

    def test_creates_random_strategy(self):
        strategy = ShortCodeFactory.create_strategy(ShortCodeStrategyType.RANDOM)
        assert isinstance(strategy, RandomShortCodeStrategy)

    def test_creates_base62_strategy(self):
        strategy = ShortCodeFactory.create_strategy(ShortCodeStrategyType.BASE62)
        assert isinstance(strategy, Base62ShortCodeStrategy)

    def test_creates_default_from_settings(self):
        strategy = ShortCodeFactory.create_strategy()
        assert strategy.length == 8

    def test_instances_are_cached_per_length(self):
        first = ShortCodeFactory.create_strategy(ShortCodeStrategyType.RANDOM, length=6)
        second = ShortCodeFactory.create_strategy(ShortCodeStrategyType.RANDOM, length=6)
        other = ShortCodeFactory.create_strategy(ShortCodeStrategyType.RANDOM, length=7)
        assert first is second
        assert other is not first
