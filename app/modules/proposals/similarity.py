"""Edit-distance similarity used to reject near-duplicate proposals."""


def levenshtein_distance(s1: str, s2: str) -> int:
    """Classic unit-cost insert/delete/substitute distance."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            if c1 == c2:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], previous[j], current[j - 1]) + 1)
        previous = current
    return previous[-1]


def similarity(s1: str, s2: str) -> float:
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(s1, s2) / longest


def is_similar(candidate: str, existing: str, threshold: float) -> bool:
    """Case-insensitive; strictly above the threshold counts as similar."""
    return similarity(candidate.lower(), existing.lower()) > threshold
