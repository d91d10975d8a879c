"""Fuzzy matching and ranking of clipboard history entries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cliphist_query.models import MatchResult

if TYPE_CHECKING:
    from cliphist_query.store import HistoryStore

TITLE_MAX_CHARS = 100

# Scoring constants, same shape as skim/fzf
SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_BOUNDARY_WHITE = BONUS_BOUNDARY + 2
BONUS_NONWORD = SCORE_MATCH // 2
BONUS_CAMEL123 = BONUS_BOUNDARY - 1
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2

# Character classes; everything above _NONWORD is a word character
_WHITE, _NONWORD, _LOWER, _UPPER, _NUMBER = range(5)


def _char_class(ch: str) -> int:
    if ch.islower():
        return _LOWER
    if ch.isupper():
        return _UPPER
    if ch.isdigit():
        return _NUMBER
    if ch.isalpha():
        # Letters without case (CJK etc.) behave like lowercase
        return _LOWER
    if ch.isspace():
        return _WHITE
    return _NONWORD


def _bonus(prev_class: int, cls: int) -> int:
    if cls > _NONWORD:
        if prev_class == _WHITE:
            return BONUS_BOUNDARY_WHITE
        if prev_class == _NONWORD:
            return BONUS_BOUNDARY
    if prev_class == _LOWER and cls == _UPPER:
        return BONUS_CAMEL123
    if prev_class != _NUMBER and cls == _NUMBER:
        return BONUS_CAMEL123
    if cls == _NONWORD:
        return BONUS_NONWORD
    if cls == _WHITE:
        return BONUS_BOUNDARY_WHITE
    return 0


# Above this many cells (searched text x query length) the full alignment
# search is skipped in favour of a linear scan, as fzf does with its v1 path
MAX_ALIGNMENT_CELLS = 100_000


def _fold(s: str) -> str:
    # One char out per char in ("İ" lowers to two), so indices stay aligned
    return "".join(c.lower()[0] for c in s)


def _first_window(pattern: str, target: str) -> tuple[int, int] | None:
    """Tightest (start, end) around the first complete match, or None."""
    pidx = 0
    end = -1
    for i, ch in enumerate(target):
        if ch == pattern[pidx]:
            pidx += 1
            if pidx == len(pattern):
                end = i
                break
    if end < 0:
        return None

    # Walk back from the end to find the tightest start
    pidx = len(pattern) - 1
    start = end
    for i in range(end, -1, -1):
        if target[i] == pattern[pidx]:
            pidx -= 1
            if pidx < 0:
                start = i
                break
    return (start, end)


def _score_window(
    pattern: str, target: str, text: str, start: int, end: int
) -> tuple[int, list[int]]:
    """Score a greedy left-to-right match inside text[start:end + 1]."""
    score = 0
    in_gap = False
    consecutive = 0
    first_bonus = 0
    matched: list[int] = []
    prev_class = _char_class(text[start - 1]) if start > 0 else _WHITE
    pidx = 0
    for i in range(start, end + 1):
        cls = _char_class(text[i])
        if pidx < len(pattern) and target[i] == pattern[pidx]:
            matched.append(i)
            score += SCORE_MATCH
            bonus = _bonus(prev_class, cls)
            if consecutive == 0:
                first_bonus = bonus
            else:
                # Break the run's bonus inheritance at a stronger boundary
                if bonus >= BONUS_BOUNDARY and bonus > first_bonus:
                    first_bonus = bonus
                bonus = max(bonus, first_bonus, BONUS_CONSECUTIVE)
            score += bonus * BONUS_FIRST_CHAR_MULTIPLIER if pidx == 0 else bonus
            in_gap = False
            consecutive += 1
            pidx += 1
        else:
            score += SCORE_GAP_EXTENSION if in_gap else SCORE_GAP_START
            in_gap = True
            consecutive = 0
            first_bonus = 0
        prev_class = cls

    return (score, matched)


def _best_alignment(
    pattern: str, target: str, text: str, lo: int, hi: int
) -> tuple[int, list[int]]:
    """Highest-scoring placement of pattern inside text[lo:hi + 1].

    Row p of the tables describes pattern[p]: `scores[j]` is the best score
    of a placement ending with pattern[p] on column j (None if impossible),
    `runs[j]` the bonus of the first char of the consecutive run ending
    there, and `links[j]` the column pattern[p - 1] sits on along that path.
    """
    width = hi - lo + 1
    bonuses: list[int] = []
    prev_class = _char_class(text[lo - 1]) if lo > 0 else _WHITE
    for i in range(lo, hi + 1):
        cls = _char_class(text[i])
        bonuses.append(_bonus(prev_class, cls))
        prev_class = cls

    scores: list[int | None] = [None] * width
    runs = [0] * width
    for j in range(width):
        if target[lo + j] == pattern[0]:
            scores[j] = SCORE_MATCH + bonuses[j] * BONUS_FIRST_CHAR_MULTIPLIER
            runs[j] = bonuses[j]
    all_links: list[list[int]] = [[-1] * width]

    for ch in pattern[1:]:
        prev_scores, prev_runs = scores, runs
        scores = [None] * width
        runs = [0] * width
        links = [-1] * width
        # Best placement so far that leaves at least one unmatched char
        gap_score: int | None = None
        gap_from = -1
        for j in range(1, width):
            if gap_score is not None:
                gap_score += SCORE_GAP_EXTENSION
            if j >= 2:
                opened = prev_scores[j - 2]
                if opened is not None and (
                    gap_score is None or opened + SCORE_GAP_START > gap_score
                ):
                    gap_score = opened + SCORE_GAP_START
                    gap_from = j - 2

            if target[lo + j] != ch:
                continue
            bonus = bonuses[j]
            diagonal = prev_scores[j - 1]
            if diagonal is not None:
                first = prev_runs[j - 1]
                if bonus >= BONUS_BOUNDARY and bonus > first:
                    first = bonus
                scores[j] = (
                    diagonal + SCORE_MATCH + max(bonus, first, BONUS_CONSECUTIVE)
                )
                runs[j] = first
                links[j] = j - 1
            if gap_score is not None:
                jumped = gap_score + SCORE_MATCH + bonus
                current = scores[j]
                if current is None or jumped > current:
                    scores[j] = jumped
                    runs[j] = bonus
                    links[j] = gap_from
        all_links.append(links)

    best = -1
    best_score = 0
    for j, score in enumerate(scores):
        if score is not None and (best < 0 or score > best_score):
            best = j
            best_score = score
    if best < 0:
        return (0, [])

    matched: list[int] = []
    j = best
    for links in reversed(all_links):
        matched.append(lo + j)
        j = links[j]
    matched.reverse()
    return (best_score, matched)


def fuzzy_match(query: str, text: str) -> tuple[int, list[int]]:
    """Fuzzy match a query against text with smart case.

    Returns (score, matched_indices) where higher score = better match.
    Score of 0 means no match. Matching is case-insensitive unless the query
    contains an uppercase character.

    Scoring follows the skim/fzf scheme:
    - Every matched character scores SCORE_MATCH
    - Gaps between matches are penalized (start + per-char extension)
    - Matches at word boundaries and camelCase humps get a bonus
    - Consecutive matches keep the bonus of the run's first character
    - The first query character's bonus counts double

    Every placement of the query in the text is considered and the best
    one wins. For very long text (see MAX_ALIGNMENT_CELLS) only the first
    complete match and the first exact substring are scored.
    """
    if not query:
        return (0, [])

    case_sensitive = any(c.isupper() for c in query)
    pattern = query if case_sensitive else _fold(query)
    target = text if case_sensitive else _fold(text)

    window = _first_window(pattern, target)
    if window is None:
        return (0, [])

    lo = target.find(pattern[0])
    hi = target.rfind(pattern[-1])
    if (hi - lo + 1) * len(pattern) <= MAX_ALIGNMENT_CELLS:
        return _best_alignment(pattern, target, text, lo, hi)

    best = _score_window(pattern, target, text, *window)
    at = target.find(pattern, lo)
    if at >= 0:
        exact = _score_window(pattern, target, text, at, at + len(pattern) - 1)
        if exact[0] > best[0]:
            best = exact
    return best


def preview(content: str) -> str:
    """Single-line title for an entry: lines trimmed and joined, max 100 chars."""
    title = " ".join(line.strip() for line in content.splitlines()).strip()
    return title[:TITLE_MAX_CHARS]


def rank(
    query: str, store: HistoryStore, limit: int, prefix: str = ""
) -> list[MatchResult]:
    """Rank store entries against a query.

    Queries not starting with `prefix` match nothing. With the prefix
    stripped, an empty query returns the most recent `limit` entries;
    otherwise entries are fuzzy scored, non-matches dropped and the rest
    sorted by score (ties keep recency order) and cut to `limit`.
    """
    if limit <= 0 or not query.startswith(prefix):
        return []

    term = query[len(prefix) :]
    if not term:
        return [
            MatchResult(id=e.id, content=e.content, score=0)
            for e in store.entries[: min(limit, len(store))]
        ]

    results: list[MatchResult] = []
    for entry in store:
        score, _ = fuzzy_match(term, entry.content)
        if score > 0:
            results.append(MatchResult(id=entry.id, content=entry.content, score=score))

    # sort() is stable, so equal scores stay most-recent-first
    results.sort(key=lambda r: r.score, reverse=True)
    return results[:limit]
