"""
Rogers-Castro Bayes — Parameter Sets
====================================
Typed parameter records for the four additive age components of the
Rogers-Castro migration schedule, plus the validator that turns a loose
name→value mapping into them.

Model vocabulary (13 names):
    Pre-working age:   a1, alpha1
    Working age:       a2, alpha2, mu2, lambda2
    Retirement:        a3, alpha3, mu3, lambda3
    Post-retirement:   a4, lambda4
    Baseline:          c

A family is either fully specified or absent. Absent families are stored
as None, so downstream code never sees a half-initialized component.

Usage:
    from rogers_castro.parameters import validate_parameters

    params = validate_parameters({'a1': 0.09, 'alpha1': 0.1, 'c': 0.01})
    params.pre_working_age.alpha1   # 0.1
    params.working_age              # None
"""

import numbers
from dataclasses import dataclass, fields
from typing import Dict, List, Mapping, Optional, Tuple

from .exceptions import ValidationError


# ═══════════════════════════════════════════════════════════════
# Family records
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PreWorkingAgeParams:
    """Childhood component: a1 * exp(alpha1 * x)."""
    a1: float
    alpha1: float       # Rate of change (sign decides rise or decay)


@dataclass(frozen=True)
class WorkingAgeParams:
    """Labour-force peak: a2 * exp(-alpha2*(x-mu2) - exp(-lambda2*(x-mu2)))."""
    a2: float           # Peak height
    alpha2: float       # Descent rate after the peak
    mu2: float          # Peak location (age)
    lambda2: float      # Ascent rate before the peak


@dataclass(frozen=True)
class RetirementParams:
    """Retirement peak, same double-exponential shape as working age."""
    a3: float
    alpha3: float
    mu3: float
    lambda3: float


@dataclass(frozen=True)
class PostRetirementParams:
    """Late-life upward slope: a4 * exp(lambda4 * x)."""
    a4: float
    lambda4: float


FAMILY_TYPES = {
    'pre_working_age': PreWorkingAgeParams,
    'working_age': WorkingAgeParams,
    'retirement': RetirementParams,
    'post_retirement': PostRetirementParams,
}

FAMILY_PARAMETERS: Dict[str, Tuple[str, ...]] = {
    family: tuple(f.name for f in fields(cls))
    for family, cls in FAMILY_TYPES.items()
}

BASELINE = 'c'

PARAMETER_NAMES: Tuple[str, ...] = tuple(
    name for names in FAMILY_PARAMETERS.values() for name in names
) + (BASELINE,)


@dataclass(frozen=True)
class RogersCastroParams:
    """Validated parameter set: baseline plus one optional record per family.

    Values are usually floats, but any array-like or symbolic tensor that
    supports arithmetic works, which is how the same record carries
    posterior draws and model random variables.
    """
    c: float
    pre_working_age: Optional[PreWorkingAgeParams] = None
    working_age: Optional[WorkingAgeParams] = None
    retirement: Optional[RetirementParams] = None
    post_retirement: Optional[PostRetirementParams] = None

    @property
    def active_families(self) -> List[str]:
        return [name for name in FAMILY_TYPES if getattr(self, name) is not None]

    def to_dict(self) -> Dict[str, float]:
        """Flatten back to the name→value mapping (active families only)."""
        out = {}
        for family in self.active_families:
            record = getattr(self, family)
            for name in FAMILY_PARAMETERS[family]:
                out[name] = getattr(record, name)
        out[BASELINE] = self.c
        return out

    @classmethod
    def from_values(cls, values: Mapping[str, object]) -> 'RogersCastroParams':
        """Build from a complete mapping without type checks.

        A family is active when its first parameter is in ``values``.
        Used for posterior draws and model variables, whose completeness
        is guaranteed by the ModelSpec that produced them.
        """
        records = {}
        for family, names in FAMILY_PARAMETERS.items():
            if names[0] in values:
                records[family] = FAMILY_TYPES[family](**{n: values[n] for n in names})
        return cls(c=values[BASELINE], **records)


# ═══════════════════════════════════════════════════════════════
# Model specification (which families are estimated)
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ModelSpec:
    """Family switches for estimation.

    Inactive families are left out of the model entirely rather than
    fixed at zero.
    """
    pre_working_age: bool = True
    working_age: bool = True
    retirement: bool = False
    post_retirement: bool = False

    @property
    def active_families(self) -> List[str]:
        return [name for name in FAMILY_TYPES if getattr(self, name)]

    @property
    def parameter_names(self) -> List[str]:
        """Free curve parameters in canonical order, baseline last."""
        names = [n for family in self.active_families for n in FAMILY_PARAMETERS[family]]
        return names + [BASELINE]


# ═══════════════════════════════════════════════════════════════
# Validator
# ═══════════════════════════════════════════════════════════════

def _as_float(name: str, value) -> float:
    # bool is an Integral; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(
            f"Parameter '{name}' must be a real number, got {type(value).__name__}"
        )
    return float(value)


def validate_parameters(parameters: Mapping[str, float]) -> RogersCastroParams:
    """Validate a partially specified parameter mapping.

    Args:
        parameters: Mapping of parameter name to value. Each family must be
            given in full or not at all; ``c`` is always required.

    Returns:
        RogersCastroParams with inactive families set to None

    Raises:
        ValidationError: on unknown names, non-numeric values, a missing
            baseline, or a partially specified family
    """
    unknown = sorted(set(parameters) - set(PARAMETER_NAMES))
    if unknown:
        raise ValidationError(
            f"Unknown parameter(s) {unknown}. Valid names: {list(PARAMETER_NAMES)}"
        )

    records = {}
    for family, names in FAMILY_PARAMETERS.items():
        present = [n for n in names if n in parameters]
        if not present:
            continue
        missing = [n for n in names if n not in parameters]
        if missing:
            raise ValidationError(
                f"Family '{family}' is partially specified: "
                f"got {present}, missing {missing}",
                family=family,
                missing=missing,
            )
        values = {n: _as_float(n, parameters[n]) for n in names}
        records[family] = FAMILY_TYPES[family](**values)

    if BASELINE not in parameters:
        raise ValidationError(
            "Baseline parameter 'c' is required",
            family=BASELINE,
            missing=[BASELINE],
        )

    return RogersCastroParams(c=_as_float(BASELINE, parameters[BASELINE]), **records)
