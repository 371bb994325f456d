# -*- coding: utf-8 -*-
"""
Landmark State - Text persistence for landmark sets.

Landmarks are stored one scalar per line as ``key<TAB>value``::

    LMS-nLM	2
    LMS-nameLM[0]	+A
    LMS-x1[0]	10
    LMS-y1[0]	10
    LMS-x2[0]	12
    LMS-y2[0]	11
    LMS-nameLM[1]	+B
    ...

Reading rebuilds the set by replaying ``push`` in stored order. Lines with
other keys are ignored, so the landmark block can live inside a larger
state file. Warp coefficients are never stored; they are recomputed from
the landmarks.

Author
------
polywarp contributors

License
-------
MIT License
Copyright (c) 2026 polywarp contributors
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""

# Standard library
import logging
from pathlib import Path
from typing import Dict, Optional, Union

# polywarp internal
from polywarp.config import WarpConfig
from polywarp.exceptions import DuplicateLandmarkError, ValidationError
from polywarp.landmarks.store import LandmarkSet

logger = logging.getLogger(__name__)

KEY_PREFIX = 'LMS-'
COUNT_KEY = 'LMS-nLM'
_COORD_FIELDS = ('x1', 'y1', 'x2', 'y2')


def write_state(landmarks: LandmarkSet) -> str:
    """Serialize *landmarks* to state text.

    Parameters
    ----------
    landmarks : LandmarkSet
        Set to serialize.

    Returns
    -------
    str
        One ``key<TAB>value`` line per scalar, count first, then each
        pair in push order.
    """
    pairs = landmarks.snapshot()
    lines = [f"{COUNT_KEY}\t{len(pairs)}"]
    for i, p in enumerate(pairs):
        lines.append(f"LMS-nameLM[{i}]\t{p.label}")
        lines.append(f"LMS-x1[{i}]\t{p.x1}")
        lines.append(f"LMS-y1[{i}]\t{p.y1}")
        lines.append(f"LMS-x2[{i}]\t{p.x2}")
        lines.append(f"LMS-y2[{i}]\t{p.y2}")
    return '\n'.join(lines) + '\n'


def parse_state(text: str) -> Dict[str, str]:
    """Split state text into a ``{key: value}`` dict of ``LMS-`` entries."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition('\t')
        key = key.strip()
        if not sep or not key.startswith(KEY_PREFIX):
            continue
        values[key] = value.strip()
    return values


def _state_int(values: Dict[str, str], key: str) -> int:
    if key not in values:
        raise ValidationError(f"Landmark state is missing key '{key}'")
    try:
        return int(values[key])
    except ValueError:
        raise ValidationError(
            f"Landmark state value for '{key}' is not an integer: "
            f"{values[key]!r}"
        ) from None


def read_state(
    text: str,
    landmarks: Optional[LandmarkSet] = None,
    config: Optional[WarpConfig] = None,
) -> LandmarkSet:
    """Rebuild a landmark set from state text.

    Parameters
    ----------
    text : str
        State text as produced by ``write_state``.
    landmarks : Optional[LandmarkSet]
        Set to fill. Its contents are replaced only once the whole text has
        parsed, so a failed read leaves it untouched. A new set is created
        when None.
    config : Optional[WarpConfig]
        Capacity source for a newly created set.

    Returns
    -------
    LandmarkSet
        The filled set.

    Raises
    ------
    ValidationError
        If the count is negative or exceeds capacity, or a coordinate key
        is missing or malformed.
    """
    if landmarks is None:
        landmarks = LandmarkSet(config=config)

    values = parse_state(text)
    rows = []
    if COUNT_KEY in values:
        n = _state_int(values, COUNT_KEY)
        if n < 0:
            raise ValidationError(f"Landmark count must be >= 0, got {n}")
        if n > landmarks.max_landmarks:
            raise ValidationError(
                f"Landmark state holds {n} landmarks, capacity is "
                f"{landmarks.max_landmarks}"
            )
        rows = [
            tuple(_state_int(values, f"LMS-{field}[{i}]")
                  for field in _COORD_FIELDS)
            for i in range(n)
        ]

    # Every row parsed; only now is the caller's set replaced.
    landmarks.clear()
    for i, row in enumerate(rows):
        try:
            landmarks.push(*row)
        except DuplicateLandmarkError:
            logger.warning("Skipping landmark %d: duplicate of previous entry", i)

    logger.debug("Read %d landmarks from state", landmarks.count)
    return landmarks


def save_state(path: Union[str, Path], landmarks: LandmarkSet) -> Path:
    """Write *landmarks* to a state file at *path*."""
    path = Path(path)
    path.write_text(write_state(landmarks))
    return path


def load_state(
    path: Union[str, Path],
    config: Optional[WarpConfig] = None,
) -> LandmarkSet:
    """Read a landmark set from the state file at *path*."""
    return read_state(Path(path).read_text(), config=config)
