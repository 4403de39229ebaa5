"""
Name matching between the roster and the release report.

The two reports are formatted independently, so a released inmate's name
does not always come out identical in both. Matchers share one interface and
can be chained from strictest to loosest.
"""

import abc
import re
from typing import List, Mapping, Optional

from thefuzz import fuzz

from rosterwatch.config import ReconcileConfig
from rosterwatch.log import get_logger
from rosterwatch.model import ConfigError
from rosterwatch.parser import clean_name

logger = get_logger(__name__)

DEFAULT_FUZZY_CUTOFF = 92

STRATEGIES = ("exact", "normalized", "fuzzy")


def normalize_for_match(name: str) -> str:
    """
    Reduce a name to lowercase letters, digits and single spaces.

    Args:
        name: Name to normalize

    Returns:
        Normalized name
    """
    name = re.sub(r"[^a-z0-9 ]+", " ", (name or "").lower())
    return re.sub(r"\s+", " ", name).strip()


class NameMatcher(abc.ABC):
    """Finds the release report entry for a roster name."""

    @abc.abstractmethod
    def match(self, name: str, candidates: Mapping[str, object]) -> Optional[str]:
        """Return the key in candidates that matches name, or None."""


class ExactMatcher(NameMatcher):
    """Matches on cleaned-name equality."""

    def match(self, name: str, candidates: Mapping[str, object]) -> Optional[str]:
        cleaned = clean_name(name)
        return cleaned if cleaned in candidates else None


class NormalizedMatcher(NameMatcher):
    """Matches ignoring case, punctuation and spacing."""

    def match(self, name: str, candidates: Mapping[str, object]) -> Optional[str]:
        target = normalize_for_match(name)
        if not target:
            return None
        for key in candidates:
            if normalize_for_match(key) == target:
                return key
        return None


class FuzzyMatcher(NameMatcher):
    """Matches the best-scoring candidate at or above a score cutoff."""

    def __init__(self, score_cutoff: int = DEFAULT_FUZZY_CUTOFF):
        self.score_cutoff = score_cutoff

    def match(self, name: str, candidates: Mapping[str, object]) -> Optional[str]:
        target = normalize_for_match(name)
        if not target:
            return None

        best_key = None
        best_score = -1
        for key in candidates:
            score = fuzz.token_sort_ratio(target, normalize_for_match(key))
            if score > best_score:
                best_key, best_score = key, score

        if best_key is not None and best_score >= self.score_cutoff:
            logger.debug(f"Fuzzy matched '{name}' to '{best_key}' (score {best_score})")
            return best_key
        return None


class ChainMatcher(NameMatcher):
    """Tries each matcher in order and returns the first hit."""

    def __init__(self, matchers: List[NameMatcher]):
        self.matchers = matchers

    def match(self, name: str, candidates: Mapping[str, object]) -> Optional[str]:
        for matcher in self.matchers:
            key = matcher.match(name, candidates)
            if key is not None:
                return key
        return None


def build_matcher(cfg: Optional[ReconcileConfig] = None) -> NameMatcher:
    """
    Build the matcher chain for a reconcile strategy.

    "exact" uses cleaned-name equality only; "normalized" adds a
    punctuation-insensitive pass; "fuzzy" adds a scored pass last.

    Args:
        cfg: Reconcile configuration

    Returns:
        Name matcher
    """
    cfg = cfg or ReconcileConfig()
    if cfg.strategy not in STRATEGIES:
        raise ConfigError(f"Unknown match strategy: {cfg.strategy}")

    matchers: List[NameMatcher] = [ExactMatcher()]
    if cfg.strategy in ("normalized", "fuzzy"):
        matchers.append(NormalizedMatcher())
    if cfg.strategy == "fuzzy":
        matchers.append(FuzzyMatcher(cfg.fuzzy_cutoff))

    if len(matchers) == 1:
        return matchers[0]
    return ChainMatcher(matchers)
