"""Stamp duty engine (pure, no I/O beyond loading the rule table)"""

from .exceptions import StampDutyError, RuleTableError, InvariantViolation, InputValidationError
from .formulas import (
    FlatFormula,
    PercentFormula,
    ThresholdFlatFormula,
    Slab,
    SlabFormula,
    PerUnitFormula,
    FormulaVariant,
    formula_from_dict,
)
from .rule_table import (
    DutyOverrides,
    StateRule,
    FeeSchedule,
    RuleTable,
    get_default_rule_table,
    reset_default_rule_table,
)
from .fee_input import FeeInput, coerce_yes_no, parse_input, parse_input_strict, validate_input
from .calculation_trace import CalculationTrace, FeeLineItem, FeeResult
from .duty_resolver import DutyBreakdown, resolve_duties
from .fee_calculator import FeeCalculator, calculate_stamp_duty, list_states

__all__ = [
    'StampDutyError',
    'RuleTableError',
    'InvariantViolation',
    'InputValidationError',
    'FlatFormula',
    'PercentFormula',
    'ThresholdFlatFormula',
    'Slab',
    'SlabFormula',
    'PerUnitFormula',
    'FormulaVariant',
    'formula_from_dict',
    'DutyOverrides',
    'StateRule',
    'FeeSchedule',
    'RuleTable',
    'get_default_rule_table',
    'reset_default_rule_table',
    'FeeInput',
    'coerce_yes_no',
    'parse_input',
    'parse_input_strict',
    'validate_input',
    'CalculationTrace',
    'FeeLineItem',
    'FeeResult',
    'DutyBreakdown',
    'resolve_duties',
    'FeeCalculator',
    'calculate_stamp_duty',
    'list_states',
]
