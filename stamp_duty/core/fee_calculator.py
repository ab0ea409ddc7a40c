"""FeeCalculator: registration fees + stamp duty for company incorporation"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from .calculation_trace import FeeLineItem, FeeResult
from .duty_resolver import resolve_duties
from .fee_input import FeeInput, parse_input, parse_input_strict
from .rule_table import DEFAULT_RULE_KEY, RuleTable, get_default_rule_table


logger = logging.getLogger(__name__)


class FeeCalculator:
    """Indicative fee calculator for SPICe+ company incorporation

    Normalizes the fee form, resolves the three stamp duties of the
    jurisdiction and combines them with the fixed registration fees.
    The calculator holds no per-call state; one instance can serve any
    number of concurrent callers.

    Attributes:
        rule_table: stamp duty rule table
    """

    def __init__(
        self,
        rule_table: Optional[RuleTable] = None,
        default_state: Optional[str] = None,
        default_capital: Optional[Decimal] = None
    ):
        """FeeCalculator initialization

        Args:
            rule_table: rule table (default: the shared table)
            default_state: jurisdiction used when none is given
            default_capital: capital used when none is given
        """
        self.rule_table = rule_table if rule_table is not None else get_default_rule_table()
        self.default_state = default_state
        self.default_capital = default_capital

    def calculate(self, params: Optional[Mapping[str, Any]] = None) -> FeeResult:
        """Fee table for loosely typed form input

        Malformed values fall back to defaults; this never raises for bad input.

        Args:
            params: raw form fields

        Returns:
            FeeResult
        """
        fee_input = parse_input(
            params, self.rule_table, self.default_state, self.default_capital
        )
        return self.calculate_input(fee_input)

    def calculate_strict(self, params: Optional[Mapping[str, Any]] = None) -> FeeResult:
        """Like ``calculate`` but rejects input that would be defaulted

        Raises:
            InputValidationError: the input has unrecognized values
        """
        fee_input = parse_input_strict(
            params, self.rule_table, self.default_state, self.default_capital
        )
        return self.calculate_input(fee_input)

    def calculate_input(self, fee_input: FeeInput) -> FeeResult:
        """Fee table for already normalized input

        Args:
            fee_input: normalized parameters

        Returns:
            FeeResult
        """
        if self.rule_table.has_state(fee_input.jurisdiction):
            rule_key = fee_input.jurisdiction
        else:
            rule_key = DEFAULT_RULE_KEY
            logger.info(
                "Jurisdiction %r not in rule table; using %r rule",
                fee_input.jurisdiction, DEFAULT_RULE_KEY
            )

        rule = self.rule_table.get_state_rule(rule_key)
        duties = resolve_duties(
            rule,
            is_not_for_profit=fee_input.is_not_for_profit,
            has_authorized_capital=fee_input.has_authorized_capital,
            authorized_capital=fee_input.authorized_capital,
        )

        registration_fee_lines = self._registration_fee_lines()
        stamp_duty_lines = self._stamp_duty_lines(
            duties.memorandum_duty,
            duties.articles_duty,
            duties.incorporation_duty,
            start=len(registration_fee_lines) + 1
        )

        result = FeeResult(
            inputs=fee_input,
            registration_fee_lines=registration_fee_lines,
            stamp_duty_lines=stamp_duty_lines,
            traces=duties.traces,
            applied_rule=rule_key,
            rule_version=self.rule_table.version,
            currency=self.rule_table.currency,
            disclaimer=self.rule_table.disclaimer,
        )

        logger.debug(
            "Fee for %s (rule %s): registration %s, stamp duty %s",
            fee_input.jurisdiction, rule_key,
            result.total_registration_fees, result.total_stamp_duty
        )
        return result

    def _registration_fee_lines(self) -> tuple:
        fees = self.rule_table.fees
        amounts = [
            ("Normal Fee", fees.normal_fee),
            ("Additional Fee", fees.additional_fee),
            ("MoA registration fees", fees.moa_registration_fee),
            ("AoA registration fees", fees.aoa_registration_fee),
            ("PANTAN fees", fees.pantan_fee),
        ]
        amounts.append(("Total", sum((amount for _, amount in amounts), Decimal('0'))))

        return tuple(
            FeeLineItem(ordinal=i, label=label, amount=amount)
            for i, (label, amount) in enumerate(amounts, 1)
        )

    @staticmethod
    def _stamp_duty_lines(
        memorandum_duty: Decimal,
        articles_duty: Decimal,
        incorporation_duty: Decimal,
        start: int
    ) -> tuple:
        amounts = [
            ("Stamp Duty MOA", memorandum_duty),
            ("Stamp Duty AOA", articles_duty),
            ("Stamp Duty SPICE+ Part B", incorporation_duty),
        ]
        amounts.append(("Stamp Duty", memorandum_duty + articles_duty + incorporation_duty))

        return tuple(
            FeeLineItem(ordinal=i, label=label, amount=amount)
            for i, (label, amount) in enumerate(amounts, start)
        )

    def list_states(self) -> List[str]:
        """Jurisdictions for the form dropdown, in rule table order"""
        return self.rule_table.list_states()


def calculate_stamp_duty(
    params: Optional[Mapping[str, Any]] = None,
    include_traces: bool = False
) -> Dict[str, Any]:
    """Fee table dictionary using the shared rule table

    Example:
        >>> calculate_stamp_duty({'state': 'Delhi', 'authorisedCapitalINR': 1000000})['totals']
        {'totalRegistrationFees': 143, 'totalStampDuty': 1710, 'grandTotal': 1853}
    """
    return FeeCalculator().calculate(params).to_dict(include_traces=include_traces)


def list_states() -> List[str]:
    """Jurisdiction names of the shared rule table (``default`` excluded)"""
    return get_default_rule_table().list_states()
