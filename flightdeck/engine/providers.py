## Provider key normalization and the per-request lookup table
import re
from typing import Dict, Iterable, Tuple

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_provider_key(raw: str | None) -> str:
    """
    Case- and punctuation-insensitive provider key.
    'Study.com', 'study-com', 'STUDY_COM' -> 'studycom'
    """
    if not raw:
        return ""
    return _NON_ALNUM.sub("", raw.strip().lower())


def build_lookup(pairs: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """Map normalized provider key -> display name from (key, name) pairs.

    Both the key and the name are registered so either spelling resolves.
    """
    lookup: Dict[str, str] = {}
    for key, name in pairs:
        if key:
            lookup[normalize_provider_key(key)] = name
        if name:
            lookup.setdefault(normalize_provider_key(name), name)
    return lookup
