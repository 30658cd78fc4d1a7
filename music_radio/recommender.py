"""
Recommender module: weighted multi-attribute scoring of tracks against
station criteria, ranking, next-track selection and criteria derivation.
"""

import logging
import random
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from music_radio.config import Config
from music_radio.genres import genre_similarity
from music_radio.models import Attribute, Criterion, LibraryEntry, TrackScore


logger = logging.getLogger(__name__)


def normalize_weights(criteria: Iterable[Criterion]) -> Dict[Attribute, float]:
    """Sum weights per attribute and divide by the grand total.

    Args:
        criteria: Station criteria.

    Returns:
        Mapping of attribute to effective weight. All zeros if the total
        weight is zero.
    """
    weights: Dict[Attribute, float] = {}
    for criterion in criteria:
        weights[criterion.attribute] = weights.get(criterion.attribute, 0.0) + criterion.weight

    total = sum(weights.values())
    if total <= 0:
        return {attribute: 0.0 for attribute in weights}

    return {attribute: weight / total for attribute, weight in weights.items()}


def match_string(track_value: str, criterion_value: str) -> float:
    """Calculate string match score (0-1).

    Exact (case-insensitive) match scores 1. A criterion contained in the
    track value scores up to 0.8, a track value contained in the criterion
    up to 0.5, both by length ratio.
    """
    if not track_value or not criterion_value:
        return 0.0

    track_lower = track_value.lower()
    criterion_lower = criterion_value.lower()

    if track_lower == criterion_lower:
        return 1.0

    if criterion_lower in track_lower:
        return min(0.8, len(criterion_lower) / len(track_lower))

    if track_lower in criterion_lower:
        return min(0.5, len(track_lower) / len(criterion_lower))

    return 0.0


def attribute_match(
    track: LibraryEntry,
    criterion: Criterion,
    use_genre_similarity: bool = True,
) -> float:
    """Calculate how well a track matches a single criterion.

    Args:
        track: Library entry.
        criterion: Criterion to test.
        use_genre_similarity: Also credit related genres via the curated table.

    Returns:
        Match value in [0, 1].
    """
    attribute = criterion.attribute

    if attribute is Attribute.ARTIST:
        return match_string(track.artist, criterion.value)
    if attribute is Attribute.ALBUM:
        return match_string(track.album, criterion.value)
    if attribute is Attribute.MOOD:
        return match_string(track.mood, criterion.value)
    if attribute is Attribute.GENRE:
        best = 0.0
        for genre in track.genres:
            score = match_string(genre, criterion.value)
            if use_genre_similarity and score < 1.0:
                score = max(score, genre_similarity(genre, criterion.value))
            best = max(best, score)
        return best
    if attribute is Attribute.DECADE:
        try:
            criterion_decade = int(criterion.value.strip())
        except ValueError:
            return 0.0
        return 1.0 if (track.year // 10) * 10 == criterion_decade else 0.0

    return 0.0


def score_track(
    track: LibraryEntry,
    criteria: Sequence[Criterion],
    use_genre_similarity: bool = True,
) -> float:
    """Weighted score of a track against a station's criteria.

    Each criterion contributes ``match * normalized attribute weight``.
    Criteria sharing an attribute each contribute, so the result may
    exceed 1.
    """
    weights = normalize_weights(criteria)
    score = 0.0

    for criterion in criteria:
        weight = weights.get(criterion.attribute, 0.0)
        if weight == 0:
            continue
        score += attribute_match(track, criterion, use_genre_similarity) * weight

    return score


def rank_tracks(
    tracks: Sequence[LibraryEntry],
    criteria: Sequence[Criterion],
    use_genre_similarity: bool = True,
) -> List[TrackScore]:
    """Score and sort tracks by descending score; ties keep input order."""
    if not tracks:
        return []

    scores = np.array(
        [score_track(t, criteria, use_genre_similarity) for t in tracks], dtype=float
    )
    order = np.argsort(-scores, kind="stable")

    return [TrackScore(track=tracks[i], score=float(scores[i])) for i in order]


def derive_criteria(
    tracks: Sequence[LibraryEntry],
    base_weights: Optional[Dict[str, float]] = None,
) -> List[Criterion]:
    """Build criteria from a set of seed tracks.

    Every distinct (attribute, value) pair across the seeds becomes a
    criterion weighted by the fraction of seeds exhibiting it. A per
    attribute override in ``base_weights`` replaces that fraction.

    Args:
        tracks: Seed tracks.
        base_weights: Optional attribute name -> fixed weight.

    Returns:
        Derived criteria, in first-seen order.
    """
    if not tracks:
        return []

    overrides = {Attribute(k): float(v) for k, v in (base_weights or {}).items()}
    counts: Counter = Counter()

    for track in tracks:
        keys = []
        if track.artist:
            keys.append((Attribute.ARTIST, track.artist))
        if track.album:
            keys.append((Attribute.ALBUM, track.album))
        for genre in track.genres:
            keys.append((Attribute.GENRE, genre))
        if track.mood:
            keys.append((Attribute.MOOD, track.mood))
        if track.year:
            keys.append((Attribute.DECADE, str(track.decade)))
        # a value counts once per seed track
        for key in dict.fromkeys(keys):
            counts[key] += 1

    criteria = []
    for (attribute, value), count in counts.items():
        weight = overrides.get(attribute, count / len(tracks))
        if weight > 0:
            criteria.append(Criterion(attribute=attribute, value=value, weight=weight))

    return criteria


class Recommender:
    """Scores the library against station criteria and picks the next track.

    With ``radio.genre_similarity`` on (the default) a genre criterion also
    credits related genres, so "rap" ranks a "hip hop" track above zero.
    Turn it off to rank genre tokens by string match alone.
    """

    def __init__(self, config: Optional[Config] = None, rng: Optional[random.Random] = None):
        """Initialize recommender.

        Args:
            config: Configuration object.
            rng: Random source used when ``radio.variety`` > 1.
        """
        self.config = config or Config()
        self.history_window = int(self.config.get("radio.history_window", 10))
        self.variety = max(1, int(self.config.get("radio.variety", 1)))
        self.use_genre_similarity = bool(self.config.get("radio.genre_similarity", True))
        self.rng = rng or random.Random()

    def score_tracks(
        self,
        tracks: Sequence[LibraryEntry],
        criteria: Sequence[Criterion],
        limit: Optional[int] = None,
    ) -> List[TrackScore]:
        """Rank tracks for the given criteria.

        Args:
            tracks: Candidate tracks.
            criteria: Station criteria.
            limit: Optional number of top results to keep.

        Returns:
            Ranked track scores.
        """
        ranked = rank_tracks(tracks, criteria, self.use_genre_similarity)
        return ranked[:limit] if limit is not None else ranked

    def select_next(
        self,
        tracks: Sequence[LibraryEntry],
        criteria: Sequence[Criterion],
        history: Sequence[str] = (),
    ) -> Optional[TrackScore]:
        """Select the next track to play.

        Tracks played within the last ``history_window`` plays are skipped,
        and the track just played always is, whatever the window;
        the pick is made among the top ``variety`` remaining candidates. If
        history excludes everything, the best track other than the one just
        played is used, so a station never repeats back to back unless the
        library holds a single track.

        Args:
            tracks: Candidate tracks (the whole library).
            criteria: Station criteria.
            history: Played track ids, oldest first.

        Returns:
            Selected track score, or None if there are no tracks.
        """
        ranked = self.score_tracks(tracks, criteria)
        if not ranked:
            return None

        recent = set(history[-self.history_window:]) if self.history_window > 0 else set()
        if history:
            recent.add(history[-1])
        candidates = [ts for ts in ranked if ts.track.id not in recent]

        if not candidates:
            last_played = history[-1] if history else None
            candidates = [ts for ts in ranked if ts.track.id != last_played] or ranked[:1]
            logger.debug("History excludes every track; ignoring all but the last play")

        pool = candidates[:self.variety]
        return pool[0] if len(pool) == 1 else self.rng.choice(pool)
