"""CalculationTrace / FeeResult: fee calculation output and audit trail"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .fee_input import FeeInput


def to_number(value: Any) -> Any:
    """Decimal to a JSON-friendly int (when integral) or float"""
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    return value


@dataclass(frozen=True)
class CalculationTrace:
    """One resolved duty and how it was obtained

    Attributes:
        step_name: calculation step (e.g. "resolve_articles_duty")
        input_facts: inputs the step looked at
        applied_rule: which tier won ("not_for_profit_override", "base", ...)
        output_value: resolved amount
        formula: formula used, when one was evaluated
        rule_source: rule table entry the value came from
        notes: free text
    """

    step_name: str
    input_facts: Dict[str, Any]
    applied_rule: str
    output_value: Decimal
    formula: Optional[str] = None
    rule_source: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'step_name': self.step_name,
            'input_facts': {key: to_number(value) for key, value in self.input_facts.items()},
            'applied_rule': self.applied_rule,
            'output_value': to_number(self.output_value),
            'formula': self.formula,
            'rule_source': self.rule_source,
            'notes': self.notes,
        }

    def __str__(self) -> str:
        return f"[{self.step_name}] rule: {self.applied_rule}, result: {self.output_value:,}"


@dataclass(frozen=True)
class FeeLineItem:
    """One row of the fee table"""

    ordinal: int
    label: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {'label': self.label, 'amountINR': to_number(self.amount)}

    def to_table_row(self) -> dict:
        return {'ordinal': self.ordinal, 'label': self.label, 'amountINR': to_number(self.amount)}


@dataclass(frozen=True)
class FeeResult:
    """Final fee table

    Everything except ``inputs`` and the line amounts is derived, so the
    totals always match the lines.

    Attributes:
        inputs: normalized inputs (echoed for auditability)
        registration_fee_lines: registration fees, "Total" row last
        stamp_duty_lines: stamp duties, "Stamp Duty" total row last
        traces: how each stamp duty was resolved
        applied_rule: rule table key actually used (``default`` on fallback)
        rule_version: rule table version
        currency: currency of every amount
        disclaimer: indicative-use disclaimer
    """

    inputs: FeeInput
    registration_fee_lines: Tuple[FeeLineItem, ...]
    stamp_duty_lines: Tuple[FeeLineItem, ...]
    traces: Tuple[CalculationTrace, ...] = ()
    applied_rule: str = 'default'
    rule_version: str = 'unknown'
    currency: str = 'INR'
    disclaimer: str = ''

    @property
    def total_registration_fees(self) -> Decimal:
        return self.registration_fee_lines[-1].amount

    @property
    def total_stamp_duty(self) -> Decimal:
        return self.stamp_duty_lines[-1].amount

    @property
    def grand_total(self) -> Decimal:
        return self.total_registration_fees + self.total_stamp_duty

    @property
    def fee_table(self) -> List[FeeLineItem]:
        """All lines in table order (ordinals 1..n)"""
        return list(self.registration_fee_lines) + list(self.stamp_duty_lines)

    def get_line(self, label: str) -> Optional[FeeLineItem]:
        for line in self.fee_table:
            if line.label == label:
                return line
        return None

    def to_dict(self, include_traces: bool = False) -> Dict[str, Any]:
        """Response body of the fee calculation

        Args:
            include_traces: add the per-duty calculation traces

        Returns:
            Dictionary in the public output shape
        """
        result = {
            'success': True,
            'inputs': self.inputs.to_dict(),
            'registrationFeeLines': [line.to_dict() for line in self.registration_fee_lines],
            'stampDutyLines': [line.to_dict() for line in self.stamp_duty_lines],
            'combinedFeeTable': [line.to_table_row() for line in self.fee_table],
            'totals': {
                'totalRegistrationFees': to_number(self.total_registration_fees),
                'totalStampDuty': to_number(self.total_stamp_duty),
                'grandTotal': to_number(self.grand_total),
            },
            'currency': self.currency,
            'disclaimer': self.disclaimer,
            'ruleVersion': self.rule_version,
            'appliedRule': self.applied_rule,
        }
        if include_traces:
            result['traces'] = [trace.to_dict() for trace in self.traces]
        return result

    def get_summary(self) -> str:
        """Plain-text fee table"""
        width = max(len(line.label) for line in self.fee_table)
        lines = [f"=== Fee details: {self.inputs.jurisdiction} ===", ""]
        for line in self.fee_table:
            lines.append(f"{line.ordinal:>2}. {line.label:<{width}}  {line.amount:>12,} {self.currency}")
        lines.append("-" * (width + 22))
        lines.append(f"    {'Grand total':<{width}}  {self.grand_total:>12,} {self.currency}")
        lines.append("")
        lines.append(f"Rules: {self.applied_rule} (v{self.rule_version})")
        return "\n".join(lines)

    def get_trace_summary(self) -> str:
        lines = ["=== Stamp duty trace ===\n"]
        for i, trace in enumerate(self.traces, 1):
            lines.append(f"{i}. {trace}")
            if trace.formula:
                lines.append(f"   formula: {trace.formula}")
            if trace.notes:
                lines.append(f"   notes: {trace.notes}")
            lines.append("")

        return "\n".join(lines)

    def __str__(self) -> str:
        return self.get_summary()
