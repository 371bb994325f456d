# -*- coding: utf-8 -*-
"""
Landmark Store - Ordered, capacity-bounded set of correspondence pairs.

A landmark pairs a source-image pixel ``(x1, y1)`` with the matching
target-image pixel ``(x2, y2)``. Insertion order is significant: display
labels (``+A``, ``+B``, ...) are derived from position, and the
persistence format replays pushes in the same order.

The set is the only state shared between an interactive caller and the
warp solver. Writes are serialized by a lock and readers work on an
immutable ``snapshot()``.

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
import math
import string
import threading
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Tuple

# Third-party
import numpy as np

# polywarp internal
from polywarp.config import WarpConfig
from polywarp.exceptions import (
    DuplicateLandmarkError,
    InsufficientLandmarksError,
    LandmarkStoreFullError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_LABEL_LETTERS = string.ascii_uppercase + string.ascii_lowercase


def landmark_label(index: int) -> str:
    """Display label for the landmark at *index*.

    ``+A`` .. ``+Z`` for 0..25, ``+a`` .. ``+z`` for 26..51, then the
    decimal index (``+52``, ...).
    """
    if index < 0:
        raise ValidationError(f"Landmark index must be >= 0, got {index}")
    if index < len(_LABEL_LETTERS):
        return '+' + _LABEL_LETTERS[index]
    return f'+{index}'


@dataclass(frozen=True)
class LandmarkPair:
    """A source/target point correspondence.

    Attributes
    ----------
    index : int
        0-based position in the owning set.
    x1, y1 : int
        Pixel in the source (left) image.
    x2, y2 : int
        Pixel in the target (right) image.
    ox1, oy1, ox2, oy2 : int
        Display position after a transform. Equal to the input
        coordinates until a warp remaps them.
    label : str
        Display label, derived from ``index``.
    """

    index: int
    x1: int
    y1: int
    x2: int
    y2: int
    ox1: int
    oy1: int
    ox2: int
    oy2: int
    label: str

    @classmethod
    def create(cls, index: int, x1: int, y1: int,
               x2: int, y2: int) -> 'LandmarkPair':
        return cls(index, x1, y1, x2, y2, x1, y1, x2, y2,
                   landmark_label(index))

    @property
    def coords(self) -> Tuple[int, int, int, int]:
        """The ``(x1, y1, x2, y2)`` tuple compared for duplicates."""
        return (self.x1, self.y1, self.x2, self.y2)


def _as_pixel(name: str, value) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Landmark coordinate {name} must be an integer")
    try:
        pixel = int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Landmark coordinate {name} must be an integer, got {value!r}"
        ) from None
    if pixel != value:
        raise ValidationError(
            f"Landmark coordinate {name} must be an integer, got {value!r}"
        )
    return pixel


class LandmarkSet:
    """Ordered collection of landmark pairs with a capacity ceiling.

    Parameters
    ----------
    max_landmarks : Optional[int]
        Capacity. Defaults to ``config.max_landmarks``.
    config : Optional[WarpConfig]
        Source of the default capacity.

    Examples
    --------
    >>> lms = LandmarkSet(max_landmarks=10)
    >>> lms.push(10, 10, 12, 11)
    0
    >>> lms.push(50, 10, 53, 9)
    1
    >>> len(lms)
    2
    """

    def __init__(
        self,
        max_landmarks: Optional[int] = None,
        config: Optional[WarpConfig] = None,
    ) -> None:
        config = config or WarpConfig()
        if max_landmarks is None:
            max_landmarks = config.max_landmarks
        if max_landmarks < 1:
            raise ValidationError(
                f"max_landmarks must be >= 1, got {max_landmarks}"
            )
        self._max_landmarks = int(max_landmarks)
        self._pairs: List[LandmarkPair] = []
        self._lock = threading.RLock()

    @property
    def max_landmarks(self) -> int:
        return self._max_landmarks

    @property
    def count(self) -> int:
        """Number of landmark pairs currently held."""
        return len(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[LandmarkPair]:
        return iter(self.snapshot())

    def __getitem__(self, index: int) -> LandmarkPair:
        return self.snapshot()[index]

    def __repr__(self) -> str:
        return f"LandmarkSet(count={self.count}, max={self._max_landmarks})"

    @property
    def is_full(self) -> bool:
        return self.count >= self._max_landmarks

    @property
    def labels(self) -> List[str]:
        return [pair.label for pair in self.snapshot()]

    def snapshot(self) -> Tuple[LandmarkPair, ...]:
        """Immutable copy of the current pairs, in push order."""
        with self._lock:
            return tuple(self._pairs)

    def push(self, x1: int, y1: int, x2: int, y2: int) -> int:
        """Append a landmark pair.

        Parameters
        ----------
        x1, y1 : int
            Source image pixel.
        x2, y2 : int
            Target image pixel.

        Returns
        -------
        int
            0-based index of the new pair.

        Raises
        ------
        LandmarkStoreFullError
            If the set already holds ``max_landmarks`` pairs.
        DuplicateLandmarkError
            If ``(x1, y1, x2, y2)`` equals the most recently pushed pair.
            Earlier pairs are not checked.
        """
        coords = (
            _as_pixel('x1', x1), _as_pixel('y1', y1),
            _as_pixel('x2', x2), _as_pixel('y2', y2),
        )
        with self._lock:
            n = len(self._pairs)
            if n >= self._max_landmarks:
                raise LandmarkStoreFullError(
                    f"Max # of landmarks ({self._max_landmarks}) reached, "
                    f"delete some before adding more"
                )
            if n > 0 and self._pairs[-1].coords == coords:
                raise DuplicateLandmarkError(
                    f"Landmark {coords} duplicates the last landmark pushed"
                )
            self._pairs.append(LandmarkPair.create(n, *coords))
        logger.debug("Pushed landmark %s at %s", landmark_label(n), coords)
        return n

    def delete_last(self) -> int:
        """Remove the most recently pushed pair.

        Returns
        -------
        int
            The new count. 0 (and no change) if the set was empty.
        """
        with self._lock:
            if self._pairs:
                self._pairs.pop()
            return len(self._pairs)

    def clear(self) -> None:
        """Remove all pairs."""
        with self._lock:
            self._pairs.clear()

    def set_output(self, index: int, ox1: int, oy1: int,
                   ox2: int, oy2: int) -> None:
        """Set the display (post-transform) coordinates of one pair."""
        with self._lock:
            pair = self._pairs[index]
            self._pairs[index] = replace(
                pair,
                ox1=_as_pixel('ox1', ox1), oy1=_as_pixel('oy1', oy1),
                ox2=_as_pixel('ox2', ox2), oy2=_as_pixel('oy2', oy2),
            )

    def source_points(self) -> np.ndarray:
        """Source coordinates as an (N, 2) float array of ``(x1, y1)``."""
        pairs = self.snapshot()
        return np.array([(p.x1, p.y1) for p in pairs],
                        dtype=np.float64).reshape(len(pairs), 2)

    def target_points(self) -> np.ndarray:
        """Target coordinates as an (N, 2) float array of ``(x2, y2)``."""
        pairs = self.snapshot()
        return np.array([(p.x2, p.y2) for p in pairs],
                        dtype=np.float64).reshape(len(pairs), 2)

    def similarity(self) -> float:
        """Difference in spread between the source and target clouds.

        For each cloud, the squared distances of its points from the
        cloud's integer-truncated centroid are summed. The result is
        ``sqrt(|sum1 - sum2| / n)``. Identical spreads give 0.

        Returns
        -------
        float

        Raises
        ------
        InsufficientLandmarksError
            If fewer than 3 landmarks are held.
        """
        pairs = self.snapshot()
        n = len(pairs)
        if n < 3:
            raise InsufficientLandmarksError(
                f"Need 3 or more landmarks to compute similarity, got {n}"
            )

        def spread(points: List[Tuple[int, int]]) -> int:
            # Integer centroid, truncated toward zero.
            mx = int(math.fsum(x for x, _ in points) / n)
            my = int(math.fsum(y for _, y in points) / n)
            return sum((mx - x) ** 2 + (my - y) ** 2 for x, y in points)

        sum1 = spread([(p.x1, p.y1) for p in pairs])
        sum2 = spread([(p.x2, p.y2) for p in pairs])
        return math.sqrt(abs(sum1 - sum2) / n)

    def describe(self) -> str:
        """Multi-line listing of the current landmarks."""
        lines = ["Current landmarks"]
        for p in self.snapshot():
            lines.append(
                f"   LM[{p.label[1:]}] (x1,y1)=({p.x1},{p.y1}), "
                f"(x2,y2)=({p.x2},{p.y2})"
            )
        lines.append(f"   # landmarks = {self.count}")
        return '\n'.join(lines) + '\n'
