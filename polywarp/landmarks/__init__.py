# -*- coding: utf-8 -*-
"""
Landmarks Module - Correspondence pairs, persistence, and demo presets.

Key Classes
-----------
- LandmarkPair: One source/target point correspondence
- LandmarkSet: Ordered, capacity-bounded collection of pairs

Usage
-----
    >>> from polywarp.landmarks import LandmarkSet, write_state, read_state
    >>> lms = LandmarkSet()
    >>> lms.push(10, 10, 12, 11)
    0
    >>> restored = read_state(write_state(lms))

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

from polywarp.landmarks.store import LandmarkPair, LandmarkSet, landmark_label
from polywarp.landmarks.state import (
    load_state,
    read_state,
    save_state,
    write_state,
)
from polywarp.landmarks.demo import DEMO_LANDMARKS, load_demo_landmarks

__all__ = [
    'LandmarkPair',
    'LandmarkSet',
    'landmark_label',
    'load_state',
    'read_state',
    'save_state',
    'write_state',
    'DEMO_LANDMARKS',
    'load_demo_landmarks',
]
