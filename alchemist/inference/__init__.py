from .merge import merge_dictionaries
from .generate import DictionaryGenerator, seed_mapping, strip_digits
from .factorize import factorize

__all__ = [
    "merge_dictionaries",
    "DictionaryGenerator", "seed_mapping", "strip_digits",
    "factorize",
]
