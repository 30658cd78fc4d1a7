"""
Genre similarity based on a curated table of genre-family relationships.

Textually different genres can be musically close ("hip hop" / "rap"), so
relatedness comes from the table below rather than from string distance.
"""

import re
from typing import Dict, FrozenSet, List, Tuple


GENRE_ALIASES: Dict[str, str] = {
    "alt. rock": "alternative rock",
    "alt rock": "alternative rock",
    "rhythm & blues": "r&b",
    "rhythm and blues": "r&b",
    "r&b music": "r&b",
    "r and b": "r&b",
    "rnb": "r&b",
}

GENRE_RELATIONSHIPS: List[Tuple[str, str, float]] = [
    # Pop
    ("pop", "dance", 0.7),
    ("pop", "synth pop", 0.6),
    ("pop", "indie pop", 0.7),
    ("pop", "adult contemporary", 0.6),
    ("pop", "boy band", 0.6),
    ("pop", "dance pop", 0.7),
    ("dance", "electronic", 0.6),
    ("dance", "house", 0.8),
    ("dance", "techno", 0.6),
    ("dance", "progressive house", 0.7),
    ("dance", "deep house", 0.8),

    # Rock
    ("rock", "alternative rock", 0.8),
    ("rock", "punk", 0.7),
    ("rock", "metal", 0.6),
    ("rock", "hard rock", 0.8),
    ("rock", "progressive rock", 0.6),
    ("rock", "indie rock", 0.8),
    ("rock", "power pop", 0.6),
    ("rock", "pop rock", 0.7),
    ("rock", "soft rock", 0.6),
    ("rock", "goth rock", 0.5),
    ("rock", "acid rock", 0.6),
    ("rock", "classic rock", 0.9),
    ("classic rock", "hard rock", 0.7),
    ("classic rock", "oldies", 0.5),
    ("alternative rock", "indie rock", 0.8),
    ("alternative rock", "grunge", 0.7),
    ("alternative", "alternative rock", 0.9),
    ("alternative", "indie", 0.8),
    ("punk", "post punk", 0.6),
    ("punk", "ska", 0.5),
    ("punk", "hardcore punk", 0.7),
    ("punk", "pop punk", 0.7),
    ("grunge", "hard rock", 0.6),

    # Electronic
    ("electronic", "house", 0.7),
    ("electronic", "techno", 0.7),
    ("electronic", "ambient", 0.5),
    ("electronic", "dubstep", 0.6),
    ("electronic", "drum and bass", 0.6),
    ("electronic", "synthwave", 0.5),
    ("electronic", "chillout", 0.5),
    ("electronic", "idm", 0.6),
    ("electronic", "trance", 0.7),
    ("electronica", "electronic", 0.9),
    ("house", "deep house", 0.8),
    ("house", "progressive house", 0.8),
    ("house", "progressive", 0.6),
    ("techno", "house", 0.7),
    ("techno", "acid techno", 0.8),
    ("techno", "progressive techno", 0.7),
    ("techno", "minimal techno", 0.7),
    ("trance", "progressive house", 0.6),
    ("synth pop", "new wave", 0.7),
    ("synthwave", "new wave", 0.5),

    # Hip-hop
    ("hip hop", "rap", 0.9),
    ("hip hop", "trap", 0.7),
    ("hip hop", "conscious rap", 0.7),
    ("hip hop", "gangsta rap", 0.8),
    ("hip hop", "rap rock", 0.5),
    ("hip hop", "east coast hip hop", 0.7),
    ("hip hop", "west coast hip hop", 0.7),
    ("rap", "conscious rap", 0.7),
    ("rap", "gangsta rap", 0.8),
    ("rap", "trap", 0.7),
    ("trap", "melodic trap", 0.6),
    ("trap", "cloud rap", 0.5),

    # Soul and R&B
    ("soul", "r&b", 0.8),
    ("soul", "funk", 0.7),
    ("soul", "motown", 0.7),
    ("soul", "disco", 0.6),
    ("soul", "neo soul", 0.8),
    ("r&b", "contemporary r&b", 0.8),
    ("r&b", "neo soul", 0.7),
    ("r&b", "hip hop", 0.6),
    ("funk", "disco", 0.6),
    ("funk", "soul funk", 0.8),
    ("gospel", "soul", 0.7),
    ("gospel", "r&b", 0.6),
    ("motown", "oldies", 0.6),
    ("disco", "pop", 0.5),
    ("disco", "dance", 0.7),

    # Jazz
    ("jazz", "fusion", 0.7),
    ("jazz", "smooth jazz", 0.6),
    ("jazz", "bebop", 0.6),
    ("jazz", "swing", 0.5),
    ("jazz", "latin jazz", 0.6),
    ("jazz", "contemporary jazz", 0.6),
    ("jazz", "jazz fusion", 0.8),
    ("jazz", "big band", 0.6),
    ("jazz", "blues", 0.5),
    ("fusion", "progressive rock", 0.5),
    ("fusion", "jazz fusion", 0.9),
    ("bebop", "jazz fusion", 0.7),
    ("swing", "big band", 0.8),
    ("experimental", "free jazz", 0.6),

    # Country and folk
    ("country", "bluegrass", 0.7),
    ("country", "folk", 0.6),
    ("country", "country rock", 0.7),
    ("country", "country pop", 0.6),
    ("country", "americana", 0.7),
    ("bluegrass", "folk", 0.6),
    ("country rock", "alternative country", 0.6),
    ("folk", "acoustic", 0.6),
    ("folk", "traditional folk", 0.6),
    ("folk", "singer songwriter", 0.6),
    ("folk", "folk rock", 0.7),
    ("folk rock", "rock", 0.6),
    ("americana", "folk", 0.6),

    # Classical
    ("classical", "orchestral", 0.8),
    ("classical", "baroque", 0.7),
    ("classical", "romantic", 0.7),
    ("classical", "opera", 0.6),
    ("classical", "soundtrack", 0.4),
    ("orchestral", "symphonic", 0.8),
    ("orchestral", "soundtrack", 0.6),

    # Blues
    ("blues", "blues rock", 0.7),
    ("blues", "delta blues", 0.8),
    ("blues", "chicago blues", 0.8),
    ("blues", "r&b", 0.5),
    ("blues rock", "hard blues", 0.6),
    ("blues rock", "classic rock", 0.6),

    # Metal
    ("metal", "heavy metal", 0.9),
    ("metal", "thrash metal", 0.8),
    ("metal", "thrash", 0.8),
    ("metal", "death metal", 0.7),
    ("metal", "black metal", 0.6),
    ("metal", "nu metal", 0.7),
    ("metal", "metalcore", 0.6),
    ("heavy metal", "hard rock", 0.7),

    # Other
    ("reggae", "dub", 0.7),
    ("reggae", "ska", 0.5),
    ("reggae", "dub reggae", 0.8),
    ("reggae", "dancehall", 0.7),
    ("indie", "indie rock", 0.8),
    ("indie", "alternative rock", 0.7),
    ("indie", "indie pop", 0.7),
    ("progressive", "progressive rock", 0.7),
    ("progressive", "progressive house", 0.6),
    ("ambient", "new age", 0.5),
    ("ambient", "idm", 0.6),
    ("ambient", "chillout", 0.7),
    ("world", "afrobeat", 0.6),
    ("world", "latin", 0.5),
    ("world", "flamenco", 0.4),
    ("latin", "reggaeton", 0.7),
    ("latin", "salsa", 0.7),
    ("experimental", "avant garde", 0.7),
    ("experimental", "noise", 0.6),
]


def _build_index(
    relationships: List[Tuple[str, str, float]]
) -> Dict[FrozenSet[str], float]:
    index: Dict[FrozenSet[str], float] = {}
    for first, second, score in relationships:
        key = frozenset((first, second))
        # Keep the first score listed for a pair
        index.setdefault(key, score)
    return index


_RELATION_INDEX = _build_index(GENRE_RELATIONSHIPS)


def normalize_genre(genre: str) -> str:
    """Normalize a free-text genre label.

    Lowercases, trims, collapses whitespace, turns hyphens into spaces, and
    maps known variant spellings to a canonical form.

    Args:
        genre: Raw genre label.

    Returns:
        Normalized label.
    """
    lowered = (genre or "").lower().strip()
    lowered = re.sub(r"\s+", " ", lowered).replace("-", " ")
    lowered = re.sub(r"\s+", " ", lowered).strip()
    return GENRE_ALIASES.get(lowered, lowered)


def genre_similarity(genre_a: str, genre_b: str) -> float:
    """Score relatedness of two genre labels in [0, 1].

    Identical labels (after normalization) score 1, related pairs score
    their curated value, anything else scores 0. Symmetric.

    Args:
        genre_a: First genre label.
        genre_b: Second genre label.

    Returns:
        Similarity score.
    """
    a = normalize_genre(genre_a)
    b = normalize_genre(genre_b)

    if a == b:
        return 1.0

    return _RELATION_INDEX.get(frozenset((a, b)), 0.0)
