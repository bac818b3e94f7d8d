"""Visibility codec: two audience toggles <-> one visibility level.

| suppliers | policyholders | level       |
|-----------|---------------|-------------|
| False     | False         | internal    |
| True      | False         | contractors |
| False     | True          | customers   |
| True      | True          | public      |
"""

from enum import Enum
from typing import Dict, Tuple


class VisibilityLevel(str, Enum):
    """Audience tier controlling who may access an available document."""
    INTERNAL = "internal"
    CONTRACTORS = "contractors"
    CUSTOMERS = "customers"
    PUBLIC = "public"


_ENCODE: Dict[Tuple[bool, bool], VisibilityLevel] = {
    (False, False): VisibilityLevel.INTERNAL,
    (True, False): VisibilityLevel.CONTRACTORS,
    (False, True): VisibilityLevel.CUSTOMERS,
    (True, True): VisibilityLevel.PUBLIC,
}

_DECODE: Dict[VisibilityLevel, Tuple[bool, bool]] = {level: toggles for toggles, level in _ENCODE.items()}


def encode(to_suppliers: bool, to_policyholders: bool) -> VisibilityLevel:
    """Map the two audience toggles to a visibility level.

    Example:
        >>> encode(True, False)
        <VisibilityLevel.CONTRACTORS: 'contractors'>
    """
    return _ENCODE[(bool(to_suppliers), bool(to_policyholders))]


def decode(level: VisibilityLevel) -> Tuple[bool, bool]:
    """Inverse of encode(): returns (to_suppliers, to_policyholders).

    Example:
        >>> decode(VisibilityLevel.PUBLIC)
        (True, True)
    """
    return _DECODE[VisibilityLevel(level)]
