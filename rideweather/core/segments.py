"""
Generic run-length segmentation.

A single scanner replaces per-concern open/close loops: hazards, climbs and
any other per-item classification hand it a classifier and get back maximal
runs of identical non-null tags, pruned by physical extent and an optional
significance predicate.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from rideweather.core.models import Segment

logger = logging.getLogger(__name__)

T = TypeVar("T")

Span = Tuple[float, float]


def _runs(items: Sequence[T], classify: Callable[[T], Optional[str]]) -> List[Tuple[str, int, int]]:
    """(tag, start_index, end_index) for each maximal run of a non-null tag."""
    runs: List[Tuple[str, int, int]] = []
    current: Optional[str] = None
    start = 0
    for i, item in enumerate(items):
        tag = classify(item)
        if tag == current:
            continue
        if current is not None:
            runs.append((current, start, i - 1))
        current, start = tag, i
    if current is not None:
        runs.append((current, start, len(items) - 1))
    return runs


def scan_segments(
    items: Sequence[T],
    classify: Callable[[T], Optional[str]],
    position: Callable[[T], Span],
    elapsed: Optional[Callable[[T], Span]] = None,
    *,
    min_extent: float = 0.0,
    is_significant: Optional[Callable[[Sequence[T], Segment], bool]] = None,
    severity: Optional[Callable[[Sequence[T]], float]] = None,
    closes_at_next: bool = False,
) -> List[Segment]:
    """
    Split an ordered sequence into maximal runs sharing a classification tag.

    A run closes when the tag changes or the sequence ends. Runs whose
    extent (end distance - start distance) is below ``min_extent`` are
    dropped, as are runs rejected by ``is_significant``.

    Args:
        items: Ordered sequence (non-decreasing distance)
        classify: item -> tag, or None when the item belongs to no run
        position: item -> (start_distance, end_distance); points return (d, d)
        elapsed: item -> (start_seconds, end_seconds) from a common origin
        min_extent: Minimum run extent in metres
        is_significant: Extra predicate over (run items, candidate segment)
        severity: run items -> severity (negative values are floored at 0)
        closes_at_next: For point samples, a run ends where the next item
            (the one that closed it) begins instead of at its own last item.

    Returns:
        Segments in sequence order. Segments sharing a tag never overlap.
    """
    segments: List[Segment] = []
    n = len(items)
    for tag, s, e in _runs(items, classify):
        closer = e + 1 if closes_at_next and e + 1 < n else None
        start_distance = position(items[s])[0]
        end_distance = position(items[closer])[0] if closer is not None else position(items[e])[1]

        duration = 0.0
        if elapsed is not None:
            t0 = elapsed(items[s])[0]
            t1 = elapsed(items[closer])[0] if closer is not None else elapsed(items[e])[1]
            duration = max(0.0, t1 - t0)

        run_items = items[s:e + 1]
        segment = Segment(
            tag=tag,
            start_index=s,
            end_index=e,
            start_distance=start_distance,
            end_distance=max(start_distance, end_distance),
            duration=duration,
            severity=max(0.0, float(severity(run_items))) if severity else 0.0,
        )
        if segment.distance < min_extent:
            logger.debug(f"Dropping '{tag}' run {s}-{e}: extent {segment.distance:.0f} m < {min_extent:.0f} m")
            continue
        if is_significant is not None and not is_significant(run_items, segment):
            logger.debug(f"Dropping '{tag}' run {s}-{e}: not significant")
            continue
        segments.append(segment)
    return segments
