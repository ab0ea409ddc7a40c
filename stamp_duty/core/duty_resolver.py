"""Duty resolver: override precedence and formula evaluation"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from .calculation_trace import CalculationTrace
from .rule_table import StateRule


INCORPORATION = 'incorporation_duty'
MEMORANDUM = 'memorandum_duty'
ARTICLES = 'articles_duty'

BASE_RULE = 'base'
NOT_FOR_PROFIT_NO_CAPITAL_OVERRIDE = 'not_for_profit_no_capital_override'
NOT_FOR_PROFIT_OVERRIDE = 'not_for_profit_override'
NO_SHARE_CAPITAL_OVERRIDE = 'no_share_capital_override'


@dataclass(frozen=True)
class DutyBreakdown:
    """The three resolved stamp duties of one calculation"""

    incorporation_duty: Decimal
    memorandum_duty: Decimal
    articles_duty: Decimal
    traces: Tuple[CalculationTrace, ...] = ()

    @property
    def total(self) -> Decimal:
        return self.memorandum_duty + self.articles_duty + self.incorporation_duty


def select_override(
    rule: StateRule,
    duty_field: str,
    is_not_for_profit: bool,
    has_authorized_capital: bool
) -> Tuple[Optional[Decimal], str]:
    """Pick the override tier that supplies ``duty_field``

    Precedence (highest first):
        1. not-for-profit without capital (both flags)
        2. not-for-profit
        3. no share capital

    Args:
        rule: jurisdiction rule
        duty_field: one of ``incorporation_duty``, ``memorandum_duty``, ``articles_duty``
        is_not_for_profit: Section 8 company
        has_authorized_capital: company has authorised share capital

    Returns:
        (amount, tier name), or (None, "base") when no override applies
    """
    tiers = (
        (is_not_for_profit and not has_authorized_capital,
         rule.not_for_profit_no_capital, NOT_FOR_PROFIT_NO_CAPITAL_OVERRIDE),
        (is_not_for_profit, rule.not_for_profit, NOT_FOR_PROFIT_OVERRIDE),
        (not has_authorized_capital, rule.no_share_capital, NO_SHARE_CAPITAL_OVERRIDE),
    )

    for applies, overrides, tier in tiers:
        if applies:
            amount = overrides.get(duty_field)
            if amount is not None:
                return amount, tier

    return None, BASE_RULE


def _resolve_fixed(
    rule: StateRule,
    duty_field: str,
    base_amount: Decimal,
    is_not_for_profit: bool,
    has_authorized_capital: bool
) -> CalculationTrace:
    amount, tier = select_override(rule, duty_field, is_not_for_profit, has_authorized_capital)
    if amount is None:
        amount = base_amount

    return CalculationTrace(
        step_name=f"resolve_{duty_field}",
        input_facts={
            'is_not_for_profit': is_not_for_profit,
            'has_authorized_capital': has_authorized_capital,
        },
        applied_rule=tier,
        output_value=amount,
        rule_source=rule.name,
    )


def resolve_articles_duty(
    rule: StateRule,
    is_not_for_profit: bool,
    has_authorized_capital: bool,
    authorized_capital: Decimal
) -> CalculationTrace:
    """AoA duty: override if any, else the rule's formula on effective capital"""
    amount, tier = select_override(rule, ARTICLES, is_not_for_profit, has_authorized_capital)
    capital = authorized_capital if has_authorized_capital else Decimal('0')

    input_facts = {
        'is_not_for_profit': is_not_for_profit,
        'has_authorized_capital': has_authorized_capital,
        'capital': capital,
    }

    if amount is not None:
        return CalculationTrace(
            step_name="resolve_articles_duty",
            input_facts=input_facts,
            applied_rule=tier,
            output_value=amount,
            rule_source=rule.name,
        )

    formula = rule.articles_formula
    return CalculationTrace(
        step_name="resolve_articles_duty",
        input_facts=input_facts,
        applied_rule=f"{BASE_RULE}:{formula.kind}",
        output_value=formula.evaluate(capital),
        formula=formula.describe(),
        rule_source=rule.name,
        notes=None if has_authorized_capital else "no authorised capital: capital taken as 0",
    )


def resolve_duties(
    rule: StateRule,
    is_not_for_profit: bool,
    has_authorized_capital: bool,
    authorized_capital: Decimal
) -> DutyBreakdown:
    """Resolve incorporation, memorandum and articles duty

    Each duty goes through the override precedence independently, so a
    jurisdiction may override the memorandum duty for not-for-profit
    companies while the articles duty still comes from its formula.

    Args:
        rule: jurisdiction rule
        is_not_for_profit: Section 8 company
        has_authorized_capital: company has authorised share capital
        authorized_capital: authorised capital (ignored without share capital)

    Returns:
        DutyBreakdown with one trace per duty
    """
    incorporation = _resolve_fixed(
        rule, INCORPORATION, rule.incorporation_duty, is_not_for_profit, has_authorized_capital
    )
    memorandum = _resolve_fixed(
        rule, MEMORANDUM, rule.memorandum_duty, is_not_for_profit, has_authorized_capital
    )
    articles = resolve_articles_duty(
        rule, is_not_for_profit, has_authorized_capital, authorized_capital
    )

    return DutyBreakdown(
        incorporation_duty=incorporation.output_value,
        memorandum_duty=memorandum.output_value,
        articles_duty=articles.output_value,
        traces=(memorandum, articles, incorporation),
    )
