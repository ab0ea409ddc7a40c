"""Articles-of-association duty formulas

Each jurisdiction prices the AoA stamp duty with exactly one of five
formula shapes. Every shape is a frozen dataclass with ``evaluate`` and
``describe``; ``formula_from_dict`` builds one from a rule table entry
and rejects entries that populate zero or several shapes.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_CEILING, ROUND_HALF_UP, getcontext, localcontext
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional, Tuple, Union

from .exceptions import RuleTableError


HUNDRED = Decimal('100')
LAKH = Decimal('100000')

# 250 crore
HIGH_CAPITAL_THRESHOLD = Decimal('2500000000')


def round_half_up(value: Decimal) -> Decimal:
    """Round to a whole rupee, halves away from zero."""
    return value.to_integral_value(rounding=ROUND_HALF_UP)


def _exact_context(*values: Decimal, rounding: Optional[str] = None):
    """Local decimal context wide enough to multiply ``values`` without rounding"""
    ctx = getcontext().copy()
    digits = sum(len(value.as_tuple().digits) for value in values)
    ctx.prec = max(ctx.prec, digits + 10)
    if rounding is not None:
        ctx.rounding = rounding
    return localcontext(ctx)


def to_amount(value: Any, where: str) -> Decimal:
    """Convert a rule table number to a non-negative Decimal

    Args:
        value: number loaded from the rule table
        where: location used in the error message

    Returns:
        Decimal amount

    Raises:
        RuleTableError: value is not a finite, non-negative number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise RuleTableError(f"{where}: expected a number, got {value!r}")

    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise RuleTableError(f"{where}: expected a number, got {value!r}")

    if not amount.is_finite() or amount < 0:
        raise RuleTableError(f"{where}: expected a non-negative number, got {value!r}")

    return amount


def _fmt(amount: Decimal) -> str:
    return f"{amount:,}"


@dataclass(frozen=True)
class FlatFormula:
    """Fixed duty regardless of capital"""

    kind: ClassVar[str] = 'flat'

    amount: Decimal

    def evaluate(self, capital: Decimal) -> Decimal:
        return self.amount

    def describe(self) -> str:
        return f"flat {_fmt(self.amount)}"


@dataclass(frozen=True)
class PercentFormula:
    """Percentage of capital, raised to ``min_amount`` then capped to ``max_amount``

    The floor is applied before the cap, so a cap below the floor wins.
    """

    kind: ClassVar[str] = 'percent'

    rate: Decimal
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

    def evaluate(self, capital: Decimal) -> Decimal:
        with _exact_context(capital, self.rate):
            amount = round_half_up(capital * self.rate / HUNDRED)
        if self.min_amount is not None:
            amount = max(amount, self.min_amount)
        if self.max_amount is not None:
            amount = min(amount, self.max_amount)
        return amount

    def describe(self) -> str:
        text = f"round(capital × {self.rate}%)"
        if self.min_amount is not None:
            text += f", min {_fmt(self.min_amount)}"
        if self.max_amount is not None:
            text += f", max {_fmt(self.max_amount)}"
        return text


@dataclass(frozen=True)
class ThresholdFlatFormula:
    """One flat amount up to and including ``threshold``, another above it"""

    kind: ClassVar[str] = 'threshold_flat'

    threshold: Decimal
    amount_below: Decimal
    amount_above: Decimal

    def evaluate(self, capital: Decimal) -> Decimal:
        if capital <= self.threshold:
            return self.amount_below
        return self.amount_above

    def describe(self) -> str:
        return (
            f"{_fmt(self.amount_below)} if capital <= {_fmt(self.threshold)} "
            f"else {_fmt(self.amount_above)}"
        )


@dataclass(frozen=True)
class Slab:
    max_capital: Decimal
    amount: Decimal


@dataclass(frozen=True)
class SlabFormula:
    """Capital slabs with a percentage tail

    The first slab whose ``max_capital`` is at least the capital wins
    (inclusive upper bound). Capital above every slab pays
    ``tail_percent`` of capital.
    """

    kind: ClassVar[str] = 'slabs'

    slabs: Tuple[Slab, ...]
    tail_percent: Decimal

    def evaluate(self, capital: Decimal) -> Decimal:
        for slab in self.slabs:
            if capital <= slab.max_capital:
                return slab.amount
        with _exact_context(capital, self.tail_percent):
            return round_half_up(capital * self.tail_percent / HUNDRED)

    def describe(self) -> str:
        parts = [f"{_fmt(s.amount)} up to {_fmt(s.max_capital)}" for s in self.slabs]
        parts.append(f"round(capital × {self.tail_percent}%) above")
        return "; ".join(parts)


@dataclass(frozen=True)
class PerUnitFormula:
    """Duty per started unit of ``unit_denominator`` lakh of capital

    units = ceil(capital / unit_denominator / 1 lakh). The result is capped
    to ``max_amount`` and then raised to ``min_amount`` (the reverse of
    ``PercentFormula``). When ``high_capital_override`` is set it replaces
    the whole computation for capital of 250 crore or more.
    """

    kind: ClassVar[str] = 'per_unit'

    unit_amount: Decimal
    unit_denominator: Decimal = Decimal('5')
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    high_capital_override: Optional[Decimal] = None

    def units(self, capital: Decimal) -> Decimal:
        # quotient rounds up as well, so a long fraction never drops a started unit
        with _exact_context(capital, self.unit_denominator, rounding=ROUND_CEILING):
            units = capital / (self.unit_denominator * LAKH)
            return units.to_integral_value(rounding=ROUND_CEILING)

    def evaluate(self, capital: Decimal) -> Decimal:
        if self.high_capital_override is not None and capital >= HIGH_CAPITAL_THRESHOLD:
            return self.high_capital_override

        amount = self.units(capital) * self.unit_amount
        if self.max_amount is not None:
            amount = min(amount, self.max_amount)
        if self.min_amount is not None:
            amount = max(amount, self.min_amount)
        return amount

    def describe(self) -> str:
        text = (
            f"{_fmt(self.unit_amount)} per started {self.unit_denominator} lakh of capital"
        )
        if self.max_amount is not None:
            text += f", max {_fmt(self.max_amount)}"
        if self.min_amount is not None:
            text += f", min {_fmt(self.min_amount)}"
        if self.high_capital_override is not None:
            text += f", {_fmt(self.high_capital_override)} from 250 crore"
        return text


FormulaVariant = Union[
    FlatFormula,
    PercentFormula,
    ThresholdFlatFormula,
    SlabFormula,
    PerUnitFormula,
]


# ============================================================================
# Building formulas from rule table entries
# ============================================================================

def _params(
    raw: Any,
    where: str,
    required: Iterable[str],
    optional: Iterable[str] = ()
) -> Dict[str, Any]:
    """Check a formula parameter mapping for missing and unknown keys"""
    if not isinstance(raw, Mapping):
        raise RuleTableError(f"{where}: formula parameters must be a mapping, got {raw!r}")

    required = list(required)
    allowed = set(required) | set(optional)

    missing = [key for key in required if raw.get(key) is None]
    if missing:
        raise RuleTableError(f"{where}: missing parameter(s) {', '.join(missing)}")

    unknown = sorted(str(key) for key in set(raw) - allowed)
    if unknown:
        raise RuleTableError(f"{where}: unknown parameter(s) {', '.join(unknown)}")

    return dict(raw)


def _optional_amount(raw: Dict[str, Any], key: str, where: str) -> Optional[Decimal]:
    if raw.get(key) is None:
        return None
    return to_amount(raw[key], f"{where}.{key}")


def _build_flat(raw: Any, where: str) -> FlatFormula:
    raw = _params(raw, where, ['amount'])
    return FlatFormula(amount=to_amount(raw['amount'], f"{where}.amount"))


def _build_percent(raw: Any, where: str) -> PercentFormula:
    raw = _params(raw, where, ['rate'], ['min', 'max'])
    return PercentFormula(
        rate=to_amount(raw['rate'], f"{where}.rate"),
        min_amount=_optional_amount(raw, 'min', where),
        max_amount=_optional_amount(raw, 'max', where),
    )


def _build_threshold_flat(raw: Any, where: str) -> ThresholdFlatFormula:
    raw = _params(raw, where, ['threshold', 'below', 'above'])
    return ThresholdFlatFormula(
        threshold=to_amount(raw['threshold'], f"{where}.threshold"),
        amount_below=to_amount(raw['below'], f"{where}.below"),
        amount_above=to_amount(raw['above'], f"{where}.above"),
    )


def _build_slabs(raw: Any, where: str) -> SlabFormula:
    raw = _params(raw, where, ['slabs', 'tail_percent'])

    rows = raw['slabs']
    if not isinstance(rows, list):
        raise RuleTableError(f"{where}.slabs: expected a list of slabs")

    slabs = []
    for i, row in enumerate(rows):
        row_where = f"{where}.slabs[{i}]"
        row = _params(row, row_where, ['max_capital', 'amount'])
        slab = Slab(
            max_capital=to_amount(row['max_capital'], f"{row_where}.max_capital"),
            amount=to_amount(row['amount'], f"{row_where}.amount"),
        )
        if slabs and slab.max_capital <= slabs[-1].max_capital:
            raise RuleTableError(f"{row_where}: slabs must be in ascending max_capital order")
        slabs.append(slab)

    return SlabFormula(
        slabs=tuple(slabs),
        tail_percent=to_amount(raw['tail_percent'], f"{where}.tail_percent"),
    )


def _build_per_unit(raw: Any, where: str) -> PerUnitFormula:
    raw = _params(
        raw, where,
        ['unit_amount'],
        ['unit_denominator', 'min', 'max', 'high_capital_override']
    )

    denominator = _optional_amount(raw, 'unit_denominator', where)
    if denominator is None:
        denominator = Decimal('5')
    if denominator == 0:
        raise RuleTableError(f"{where}.unit_denominator: must be greater than zero")

    return PerUnitFormula(
        unit_amount=to_amount(raw['unit_amount'], f"{where}.unit_amount"),
        unit_denominator=denominator,
        min_amount=_optional_amount(raw, 'min', where),
        max_amount=_optional_amount(raw, 'max', where),
        high_capital_override=_optional_amount(raw, 'high_capital_override', where),
    )


FORMULA_BUILDERS = {
    FlatFormula.kind: _build_flat,
    PercentFormula.kind: _build_percent,
    ThresholdFlatFormula.kind: _build_threshold_flat,
    SlabFormula.kind: _build_slabs,
    PerUnitFormula.kind: _build_per_unit,
}


def formula_from_dict(data: Any, where: str = "articles") -> FormulaVariant:
    """Build the single formula variant described by ``data``

    Args:
        data: mapping with exactly one key among ``FORMULA_BUILDERS``
        where: location used in error messages

    Returns:
        Formula variant

    Raises:
        RuleTableError: zero or several variants, unknown keys, bad parameters

    Example:
        >>> formula_from_dict({'percent': {'rate': 0.15, 'max': 2500000}})
        PercentFormula(rate=Decimal('0.15'), min_amount=None, max_amount=Decimal('2500000'))
    """
    if not isinstance(data, Mapping):
        raise RuleTableError(f"{where}: expected a mapping with one formula, got {data!r}")

    unknown = sorted(str(key) for key in data if key not in FORMULA_BUILDERS)
    if unknown:
        raise RuleTableError(f"{where}: unknown formula type(s) {', '.join(unknown)}")

    kinds = [key for key in data if key in FORMULA_BUILDERS]
    if len(kinds) != 1:
        raise RuleTableError(
            f"{where}: exactly one formula must be defined, found {len(kinds)}"
            + (f" ({', '.join(kinds)})" if kinds else "")
        )

    kind = kinds[0]
    return FORMULA_BUILDERS[kind](data[kind], f"{where}.{kind}")
