"""
Short code generation strategies for the short link engine.
Uses Strategy Pattern to allow different generation algorithms.

Both strategies draw from the ``secrets`` module so codes are not guessable
or sequential. Uniqueness is not their job: the allocator checks the
database and retries.
"""

import secrets
import string
from abc import ABC, abstractmethod


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    alphabet = string.ascii_letters + string.digits

    def __init__(self, length: int = 8):
        if length < 1:
            raise ValueError(f"Short code length must be positive, got {length}")
        self.length = length

    @abstractmethod
    def generate(self) -> str:
        """
        Generate a candidate short code.

        Returns:
            An alphanumeric string of exactly ``self.length`` characters
        """
        pass

    def is_valid_code(self, code: str) -> bool:
        """Check that ``code`` only uses characters from this alphabet"""
        return bool(code) and all(char in self.alphabet for char in code)


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Picks each character independently with secrets.choice.

    Pros: Simple, uniform over the alphabet
    Cons: One CSPRNG call per character
    """

    def generate(self) -> str:
        return ''.join(secrets.choice(self.alphabet) for _ in range(self.length))


class Base62ShortCodeStrategy(ShortCodeStrategy):
    """
    Base62 encoding of random bytes.

    Draws enough random bytes to cover 62^length, encodes the number in
    Base62 and left-pads to the fixed length.

    Pros: One CSPRNG call per code
    Cons: Slight bias from the modulo step (negligible for short codes)
    """

    BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
    alphabet = BASE62_CHARS

    def generate(self) -> str:
        space = 62 ** self.length
        nbytes = (space.bit_length() + 7) // 8 + 1
        number = int.from_bytes(secrets.token_bytes(nbytes), "big") % space
        return self._base62_encode(number).rjust(self.length, self.BASE62_CHARS[0])

    def _base62_encode(self, number: int) -> str:
        """
        Convert integer to Base62 string.

        Base62 uses: 0-9 (10) + a-z (26) + A-Z (26) = 62 characters
        This is more compact than Base10 and URL-safe.
        """
        if number == 0:
            return self.BASE62_CHARS[0]

        result = ""
        while number > 0:
            result = self.BASE62_CHARS[number % 62] + result
            number //= 62

        return result
