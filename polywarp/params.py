# -*- coding: utf-8 -*-
"""
Tunable Parameters - ``Annotated`` declarations for configuration classes.

A configuration class lists its tunable values as class-body fields whose
``typing.Annotated`` metadata carries ``Range`` and ``Desc`` markers::

    class WarpConfig(Configurable):
        delta: Annotated[float, Range(min=0.0),
                         Desc('Weight smoothing constant')] = 0.0

When the subclass is created, ``Configurable`` turns every marked field
into a ``ParamSpec`` (kept in ``__param_specs__``) and installs a
keyword-only ``__init__``. That constructor fills defaults, checks each
value, and runs ``__post_init__`` for cross-field rules.

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
import inspect
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    Dict,
    Optional,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

# polywarp internal
from polywarp.exceptions import ValidationError

Number = Union[int, float]


class ParamMeta:
    """Marker base; only fields carrying one of these are parameters."""


@dataclass(frozen=True)
class Range(ParamMeta):
    """Inclusive bounds on a numeric parameter. ``None`` leaves a side open."""

    min: Optional[Number] = None
    max: Optional[Number] = None


@dataclass(frozen=True)
class Desc(ParamMeta):
    """One-line description of a parameter."""

    text: str


_MISSING = object()


@dataclass(frozen=True)
class ParamSpec:
    """Everything the generated constructor knows about one field.

    Attributes
    ----------
    name : str
    param_type : type
        ``int``, ``float`` or another class checked with ``isinstance``.
    default : Any
        Class-body default; ``_MISSING`` when the field is required.
    description : str
    min_value, max_value : int, float or None
        Inclusive bounds from ``Range``.
    """

    name: str
    param_type: type
    default: Any = _MISSING
    description: str = ''
    min_value: Optional[Number] = None
    max_value: Optional[Number] = None

    @property
    def required(self) -> bool:
        return self.default is _MISSING

    def validate(self, value: Any) -> Any:
        """Check *value* and return it, with ``int`` widened for floats.

        Raises
        ------
        ValidationError
            On a type mismatch (``bool`` never counts as a number) or a
            value outside ``[min_value, max_value]``.
        """
        numeric = self.param_type in (int, float)
        if numeric and isinstance(value, bool):
            raise ValidationError(
                f"Parameter '{self.name}' must be "
                f"{self.param_type.__name__}, got bool"
            )
        if self.param_type is float and isinstance(value, int):
            value = float(value)
        if not isinstance(value, self.param_type):
            raise ValidationError(
                f"Parameter '{self.name}' must be "
                f"{self.param_type.__name__}, got {type(value).__name__}"
            )
        low, high = self.min_value, self.max_value
        if low is not None and value < low:
            raise ValidationError(
                f"Parameter '{self.name}' value {value!r} "
                f"is below minimum {low!r}"
            )
        if high is not None and value > high:
            raise ValidationError(
                f"Parameter '{self.name}' value {value!r} "
                f"is above maximum {high!r}"
            )
        return value


def _field_order(cls: type) -> list:
    # Base classes first, declaration order inside each class.
    names: list = []
    for klass in reversed(cls.__mro__):
        for name in vars(klass).get('__annotations__', {}):
            if name not in names:
                names.append(name)
    return names


def collect_param_specs(cls: type) -> Tuple[ParamSpec, ...]:
    """``ParamSpec`` for every ``ParamMeta``-marked field of *cls*."""
    hints = get_type_hints(cls, include_extras=True)
    specs = []
    for name in _field_order(cls):
        hint = hints.get(name)
        if get_origin(hint) is not Annotated:
            continue
        base, *extras = get_args(hint)
        markers = [m for m in extras if isinstance(m, ParamMeta)]
        if not markers:
            continue
        bounds = next((m for m in markers if isinstance(m, Range)), Range())
        desc = next((m.text for m in markers if isinstance(m, Desc)), '')
        specs.append(ParamSpec(
            name=name,
            param_type=base,
            default=getattr(cls, name, _MISSING),
            description=desc,
            min_value=bounds.min,
            max_value=bounds.max,
        ))
    return tuple(specs)


def _make_init(param_specs: Tuple[ParamSpec, ...]):
    """Keyword-only ``__init__`` that validates every field in *param_specs*."""
    by_name = {spec.name: spec for spec in param_specs}

    def __init__(self, **kwargs):
        extra = sorted(set(kwargs) - set(by_name))
        if extra:
            raise TypeError(
                f"{type(self).__name__}() got unexpected "
                f"keyword arguments: {', '.join(extra)}"
            )
        for name, spec in by_name.items():
            value = kwargs.get(name, spec.default)
            if value is _MISSING:
                raise TypeError(
                    f"{type(self).__name__}() missing required "
                    f"keyword argument: '{name}'"
                )
            object.__setattr__(self, name, spec.validate(value))
        post_init = getattr(self, '__post_init__', None)
        if post_init is not None:
            post_init()

    kw = inspect.Parameter.KEYWORD_ONLY
    __init__.__signature__ = inspect.Signature(
        [inspect.Parameter('self', inspect.Parameter.POSITIONAL_OR_KEYWORD)]
        + [
            inspect.Parameter(s.name, kw) if s.required
            else inspect.Parameter(s.name, kw, default=s.default)
            for s in param_specs
        ]
    )
    __init__.__qualname__ = '__init__'
    return __init__


class Configurable:
    """Base for classes built from ``Annotated`` parameter fields.

    Subclasses get ``__param_specs__`` and, unless they write their own,
    a generated keyword-only ``__init__``.
    """

    __param_specs__: Tuple[ParamSpec, ...] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__param_specs__ = collect_param_specs(cls)
        if cls.__param_specs__ and '__init__' not in vars(cls):
            cls.__init__ = _make_init(cls.__param_specs__)

    def to_dict(self) -> Dict[str, Any]:
        """Current parameter values keyed by name."""
        return {spec.name: getattr(self, spec.name)
                for spec in self.__param_specs__}

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        fields = ', '.join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({fields})"
