"""Fuzzy matching utilities using RapidFuzz."""
from typing import List, Tuple
from rapidfuzz import fuzz, process
from cityzip.core.normalization import normalize_city


def fuzzy_match(
    query: str,
    choices: List[str],
    threshold: float = 0.8,
    limit: int = 5
) -> List[Tuple[str, float, int]]:
    """
    Perform fuzzy matching between a city name and known city names.

    Uses WRatio and token sort ratio, keeping the best score per choice.
    Short substring hits are penalized so "aa" does not suggest "aabenraa".

    Args:
        query: City name to match
        choices: List of normalized city names
        threshold: Minimum similarity score (0-1)
        limit: Maximum number of results to return

    Returns:
        List of tuples (matched_string, score, index) sorted by score descending
    """
    normalized_query = normalize_city(query)
    if not normalized_query or not choices:
        return []

    cutoff = threshold * 100
    results = process.extract(normalized_query, choices, scorer=fuzz.WRatio, limit=limit, score_cutoff=cutoff)
    results += process.extract(normalized_query, choices, scorer=fuzz.token_sort_ratio, limit=limit, score_cutoff=cutoff)

    combined = {}
    query_len = len(normalized_query)
    for match, score, idx in results:
        score_normalized = score / 100.0
        choice_len = len(match)
        if normalized_query in match or match in normalized_query:
            length_ratio = min(query_len, choice_len) / max(query_len, choice_len)
            if length_ratio < 0.6:
                score_normalized *= 0.5

        if score_normalized < threshold:
            continue
        if idx not in combined or combined[idx][1] < score_normalized:
            combined[idx] = (match, score_normalized, idx)

    # Ties broken alphabetically so suggestions are stable
    sorted_results = sorted(combined.values(), key=lambda x: (-x[1], x[0]))
    return sorted_results[:limit]
