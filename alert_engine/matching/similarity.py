"""Normalized edit-distance similarity between short strings.

Both functions are pure: no caches, no module state, safe to call from any
number of worker threads.
"""


def levenshtein_distance(a: str, b: str) -> int:
    """Classic Levenshtein distance with unit insert/delete/substitute costs.

    Keeps two rolling rows sized to the shorter string.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, 1):
            cost = 0 if char_a == char_b else 1
            current[j] = min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Return ``(max_len - distance) / max_len`` in [0, 1].

    Two empty strings are identical (1.0); exactly one empty string scores 0.0.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    if not a or not b:
        return 0.0
    return (longest - levenshtein_distance(a, b)) / longest
