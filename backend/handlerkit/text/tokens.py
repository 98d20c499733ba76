"""Random token generation."""
import secrets
from typing import Optional, Protocol, Sequence

RANDOM_STRING_SOURCE = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_"


class ChoiceSource(Protocol):
    def choice(self, seq: Sequence[str]) -> str: ...


_system_random = secrets.SystemRandom()


def generate_random_string(n: int, rng: Optional[ChoiceSource] = None) -> str:
    """Generate a random string of length ``n``.

    Characters are drawn uniformly from letters, digits and the underscore
    using the operating system's cryptographic source. Pass ``rng`` (for
    example a seeded ``random.Random``) to get reproducible output.

    The draw is uniform on purpose. Do not replace it with "random prime
    modulo alphabet size": a prime taken mod 63 is never a multiple of 3 or
    7 (beyond 3 and 7 themselves), so most characters would almost never
    appear.

    Raises:
        ValueError: If ``n`` is negative.
    """
    if n < 0:
        raise ValueError(f"length must not be negative, got {n}")
    source = rng or _system_random
    return "".join(source.choice(RANDOM_STRING_SOURCE) for _ in range(n))
