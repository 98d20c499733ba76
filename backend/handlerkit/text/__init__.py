"""String helpers: slugs and random tokens."""
from .slug import convert_to_slug
from .tokens import RANDOM_STRING_SOURCE, generate_random_string

__all__ = ["RANDOM_STRING_SOURCE", "convert_to_slug", "generate_random_string"]
