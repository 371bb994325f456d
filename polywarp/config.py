# -*- coding: utf-8 -*-
"""
Warp Configuration - Tunable parameters for landmark storage and solving.

``WarpConfig`` gathers every constant the landmark store and the polynomial
warp solver depend on. Values can be supplied as keyword arguments, a plain
dictionary, or a YAML file::

    # warp.yaml
    warp:
      max_landmarks: 52
      delta: 4.0

    >>> from polywarp.config import WarpConfig
    >>> cfg = WarpConfig.from_yaml('warp.yaml')
    >>> cfg.max_terms
    10

Dependencies
------------
pyyaml

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
from pathlib import Path
from typing import Annotated, Any, Dict, Mapping, Union

# Third-party
import yaml

# polywarp internal
from polywarp.exceptions import ValidationError
from polywarp.params import Configurable, Desc, Range

#: Number of raw monomial basis slots.
MXTERMS = 10


class WarpConfig(Configurable):
    """Configuration for the landmark store and the warp solver.

    All fields are keyword-only and validated at construction.

    Examples
    --------
    >>> cfg = WarpConfig(delta=2.0)
    >>> cfg.replace(max_terms=6).max_terms
    6
    """

    max_landmarks: Annotated[int, Range(min=1),
                             Desc('Capacity of a landmark set')] = 100
    min_terms: Annotated[int, Range(min=1, max=MXTERMS),
                         Desc('First term count tried by the solver')] = 3
    max_terms: Annotated[int, Range(min=1, max=MXTERMS),
                         Desc('Term cap for adaptive selection')] = MXTERMS
    error_bound: Annotated[float, Range(min=0.0),
                           Desc('Per-point reconstruction error bound')] = 0.5
    delta: Annotated[float, Range(min=0.0),
                     Desc('Weight smoothing constant, 0 is not smooth')] = 0.0
    singular_tol: Annotated[float, Range(min=0.0, max=1.0),
                            Desc('Relative norm below which a term is '
                                 'treated as singular')] = 1e-10
    chunk_size: Annotated[int, Range(min=1),
                          Desc('Query points per batched evaluation')] = 2048

    def __post_init__(self) -> None:
        if self.min_terms > self.max_terms:
            raise ValidationError(
                f"min_terms ({self.min_terms}) must not exceed "
                f"max_terms ({self.max_terms})"
            )

    def replace(self, **changes: Any) -> 'WarpConfig':
        """Return a copy with *changes* applied."""
        values = self.to_dict()
        values.update(changes)
        return type(self)(**values)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'WarpConfig':
        """Build a config from a mapping, ignoring ``None`` entries.

        Raises
        ------
        ValidationError
            If a key is not a known parameter or a value is invalid.
        """
        known = {spec.name for spec in cls.__param_specs__}
        unknown = set(values) - known
        if unknown:
            raise ValidationError(
                f"Unknown warp configuration keys: {', '.join(sorted(unknown))}"
            )
        return cls(**{k: v for k, v in values.items() if v is not None})

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'WarpConfig':
        """Load a config from a YAML file.

        The parameters may sit at the top level or under a ``warp:`` key.
        An empty file yields the defaults.
        """
        with open(Path(path)) as f:
            cfg = yaml.safe_load(f) or {}
        if not isinstance(cfg, dict):
            raise ValidationError(
                f"Warp configuration in {path} must be a mapping"
            )
        section: Dict[str, Any] = cfg.get('warp', cfg)
        if not isinstance(section, dict):
            raise ValidationError(
                f"'warp' section in {path} must be a mapping"
            )
        return cls.from_dict(section)
