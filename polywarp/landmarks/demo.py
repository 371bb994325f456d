# -*- coding: utf-8 -*-
"""
Demo Landmarks - Preset correspondence lists for the bundled demo images.

``testABdemo`` pairs testA/testB (3 landmarks, enough for an affine
warp). ``plasmaDemo`` pairs the plasmaH/plasmaL gels with 3 landmarks,
or 6 when a polynomial warp is wanted.

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
from typing import Dict, Tuple

# polywarp internal
from polywarp.exceptions import ValidationError
from polywarp.landmarks.store import LandmarkSet

DEMO_LANDMARKS: Dict[str, Tuple[Tuple[int, int, int, int], ...]] = {
    'testABdemo': (
        (228, 118, 211, 79),
        (163, 258, 163, 260),
        (303, 261, 265, 322),
    ),
    'plasmaDemo': (
        (174, 381, 160, 324),
        (230, 357, 207, 300),
        (152, 327, 134, 266),
        (219, 307, 204, 244),
        (178, 410, 163, 362),
        (147, 277, 125, 211),
    ),
}


def load_demo_landmarks(
    name: str,
    landmarks: LandmarkSet,
    n_pairs: int = 3,
) -> LandmarkSet:
    """Replace the contents of *landmarks* with a demo preset.

    Parameters
    ----------
    name : str
        Preset name, a key of ``DEMO_LANDMARKS``.
    landmarks : LandmarkSet
        Set to fill. Cleared first.
    n_pairs : int
        Number of pairs to load: 3, or 6 where the preset has them.

    Returns
    -------
    LandmarkSet
        The filled set.

    Raises
    ------
    ValidationError
        If the preset is unknown or does not hold *n_pairs* landmarks.
    """
    if name not in DEMO_LANDMARKS:
        raise ValidationError(
            f"Unknown demo preset '{name}'. "
            f"Choose from {sorted(DEMO_LANDMARKS)}"
        )
    preset = DEMO_LANDMARKS[name]
    if n_pairs not in (3, 6) or n_pairs > len(preset):
        raise ValidationError(
            f"Demo preset '{name}' provides {len(preset)} landmarks, "
            f"cannot load {n_pairs}"
        )
    landmarks.clear()
    for coords in preset[:n_pairs]:
        landmarks.push(*coords)
    return landmarks
