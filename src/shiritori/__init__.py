from .connection import is_connected
from .judge import Judge, Judgement, Verdict, build_judge
from .kana import canonicalize, first_kana, last_kana
from .numerals import get_number_reading
from .reading import EffectiveReading, ReadingExtractor, build_reading_extractor
from .state import ChainState, ChainStore, LockTimeoutError, StorageError
from .tokens import Token, Tokenizer

__all__ = [
    "ChainState",
    "ChainStore",
    "EffectiveReading",
    "Judge",
    "Judgement",
    "LockTimeoutError",
    "ReadingExtractor",
    "StorageError",
    "Token",
    "Tokenizer",
    "Verdict",
    "build_judge",
    "build_reading_extractor",
    "canonicalize",
    "first_kana",
    "get_number_reading",
    "is_connected",
    "last_kana",
]
