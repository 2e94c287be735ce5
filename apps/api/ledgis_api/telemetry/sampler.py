"""Bounded distinct sampling over a fixed index universe."""

from ledgis_api.telemetry.seed import seeded_in_range

MAX_SAMPLE_ATTEMPTS = 50


def select_distinct(seed: str, count: int, universe_size: int) -> list[int]:
    """
    Pick up to `count` distinct indices from [0, universe_size).

    Candidates are drawn from `seed-0`, `seed-1`, ... and duplicates are
    skipped. Sampling stops after MAX_SAMPLE_ATTEMPTS draws, so a small
    universe can yield fewer indices than requested. Callers get the
    best-effort list rather than an error.

    Args:
        seed: Derivation seed
        count: Number of indices wanted
        universe_size: Size of the index universe

    Returns:
        Distinct indices in order of discovery
    """
    if count <= 0 or universe_size <= 0:
        return []

    target = min(count, universe_size)
    selected: list[int] = []
    for attempt in range(MAX_SAMPLE_ATTEMPTS):
        if len(selected) >= target:
            break
        candidate = seeded_in_range(f"{seed}-{attempt}", universe_size)
        if candidate not in selected:
            selected.append(candidate)

    return selected
