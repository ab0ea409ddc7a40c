"""FeeCalculator tests (registration fees + state stamp duty)"""

import pytest
from decimal import Decimal

from stamp_duty.core import (
    FeeCalculator,
    InputValidationError,
    calculate_stamp_duty,
    list_states,
    resolve_duties,
)


def duties(result):
    """(incorporation, memorandum, articles) of a result"""
    return (
        result.get_line("Stamp Duty SPICE+ Part B").amount,
        result.get_line("Stamp Duty MOA").amount,
        result.get_line("Stamp Duty AOA").amount,
    )


class TestFeeTable:
    """Shape of the fee table"""

    def test_delhi_ten_lakh(self, calculator):
        result = calculator.calculate({'state': 'Delhi', 'authorisedCapitalINR': 1000000})

        assert duties(result) == (10, 200, 1500)
        assert result.total_stamp_duty == Decimal('1710')
        assert result.total_registration_fees == Decimal('143')
        assert result.grand_total == Decimal('1853')
        assert result.applied_rule == 'Delhi'

    def test_line_labels_and_ordinals(self, calculator):
        result = calculator.calculate({'state': 'Delhi'})

        assert [(line.ordinal, line.label) for line in result.fee_table] == [
            (1, "Normal Fee"),
            (2, "Additional Fee"),
            (3, "MoA registration fees"),
            (4, "AoA registration fees"),
            (5, "PANTAN fees"),
            (6, "Total"),
            (7, "Stamp Duty MOA"),
            (8, "Stamp Duty AOA"),
            (9, "Stamp Duty SPICE+ Part B"),
            (10, "Stamp Duty"),
        ]

    @pytest.mark.parametrize("state", ["Delhi", "Maharashtra", "Kerala", "Karnataka", "Atlantis"])
    @pytest.mark.parametrize("capital", [0, 100000, 1000000, 3000000000])
    def test_totals_match_lines(self, calculator, state, capital):
        result = calculator.calculate({'state': state, 'authorisedCapitalINR': capital})

        registration = result.registration_fee_lines
        stamp_duty = result.stamp_duty_lines
        assert registration[-1].amount == sum(line.amount for line in registration[:-1])
        assert stamp_duty[-1].amount == sum(line.amount for line in stamp_duty[:-1])
        assert result.grand_total == registration[-1].amount + stamp_duty[-1].amount
        assert all(line.amount >= 0 for line in result.fee_table)

    def test_empty_input_uses_defaults(self, calculator):
        result = calculator.calculate({})

        assert result.inputs.jurisdiction == 'Maharashtra'
        assert result.inputs.authorized_capital == Decimal('100000')
        assert duties(result) == (100, 200, 1000)
        assert result.total_stamp_duty == Decimal('1300')
        assert result.grand_total == Decimal('1443')

    def test_no_input(self, calculator):
        assert calculator.calculate().grand_total == Decimal('1443')

    def test_same_input_same_result(self, calculator):
        params = {'state': 'Kerala', 'authorisedCapitalINR': '3000000', 'whetherSec8Company': 'No'}
        assert calculator.calculate(params) == calculator.calculate(params)
        assert calculator.calculate(params).to_dict() == calculator.calculate(params).to_dict()


class TestJurisdictionRules:
    """Per-jurisdiction duties from the packaged table"""

    def test_unknown_state_falls_back_to_default_rule(self, calculator):
        result = calculator.calculate({'state': 'Atlantis', 'authorisedCapitalINR': 1000000})

        assert result.inputs.jurisdiction == 'Atlantis'
        assert result.applied_rule == 'default'
        assert duties(result) == (20, 200, 1500)
        assert result.grand_total == Decimal('1863')

    def test_haryana_threshold(self, calculator):
        at_threshold = calculator.calculate({'state': 'Haryana', 'authorisedCapitalINR': 100000})
        above = calculator.calculate({'state': 'Haryana', 'authorisedCapitalINR': 100001})

        assert duties(at_threshold) == (15, 60, 60)
        assert duties(above) == (15, 60, 120)

    def test_karnataka_floor(self, calculator):
        result = calculator.calculate({'state': 'Karnataka', 'authorisedCapitalINR': 100000})
        assert duties(result) == (20, 1000, 500)

    def test_kerala_slabs(self, calculator):
        first_slab = calculator.calculate({'state': 'Kerala', 'authorisedCapitalINR': 1000000})
        tail = calculator.calculate({'state': 'Kerala', 'authorisedCapitalINR': 3000000})

        assert duties(first_slab) == (25, 1000, 2000)
        assert duties(tail) == (25, 1000, 15000)

    def test_andhra_pradesh_floor(self, calculator):
        result = calculator.calculate({'state': 'Andhra Pradesh', 'authorisedCapitalINR': 100000})
        assert duties(result) == (20, 500, 1000)

    def test_maharashtra_high_capital(self, calculator):
        below = calculator.calculate({'state': 'Maharashtra', 'authorisedCapitalINR': 2499999999})
        at = calculator.calculate({'state': 'Maharashtra', 'authorisedCapitalINR': 2500000000})

        assert duties(below) == (100, 200, 5000000)
        assert duties(at) == (100, 200, 0)

    def test_huge_capital_is_clamped(self, calculator):
        delhi = calculator.calculate({'state': 'Delhi', 'authorisedCapitalINR': '1e40'})
        kerala = calculator.calculate({'state': 'Kerala', 'authorisedCapitalINR': 1e31})

        assert duties(delhi) == (10, 200, 2500000)
        # clamped to 10^30: 0.5% is 5 * 10^27
        assert duties(kerala) == (25, 1000, 5 * 10 ** 27)

    def test_absurd_exponent_serializes(self, calculator):
        data = calculator.calculate({
            'state': 'Maharashtra',
            'authorisedCapitalINR': '1e99999999',
        }).to_dict(include_traces=True)

        assert data['inputs']['authorizedCapitalAmount'] == 10 ** 30
        assert data['stampDutyLines'][1] == {'label': 'Stamp Duty AOA', 'amountINR': 0}


class TestOverrides:
    """Not-for-profit and no-share-capital overrides"""

    def test_delhi_not_for_profit(self, calculator):
        result = calculator.calculate({'state': 'Delhi', 'whetherSec8Company': 'Yes'})

        assert duties(result) == (10, 0, 0)
        assert result.grand_total == Decimal('153')

    def test_delhi_no_share_capital(self, calculator):
        result = calculator.calculate({
            'state': 'Delhi',
            'authCapital': 'No',
            'authorisedCapitalINR': 1000000,
        })
        assert duties(result) == (10, 200, 200)

    def test_bihar_no_share_capital(self, calculator):
        result = calculator.calculate({'state': 'Bihar', 'hasNoShareCapitalFlag': 'Yes'})
        assert duties(result) == (20, 500, 1000)

    def test_madhya_pradesh_no_share_capital(self, calculator):
        result = calculator.calculate({'state': 'Madhya Pradesh', 'authCapital': 'No'})
        assert duties(result) == (10, 2500, 5000)

    def test_uttar_pradesh_not_for_profit_without_capital(self, calculator):
        result = calculator.calculate({
            'state': 'Uttar Pradesh',
            'whetherSec8Company': 'Yes',
            'authCapital': 'No',
        })
        assert duties(result) == (0, 0, 0)

    def test_uttar_pradesh_not_for_profit_with_capital(self, calculator):
        result = calculator.calculate({'state': 'Uttar Pradesh', 'whetherSec8Company': 'Yes'})
        assert duties(result) == (10, 500, 500)

    def test_uttar_pradesh_without_capital_only(self, calculator):
        result = calculator.calculate({'state': 'Uttar Pradesh', 'authCapital': 'No'})
        assert duties(result) == (10, 500, 500)

    def test_capital_ignored_without_authorised_capital(self, calculator):
        result = calculator.calculate({
            'state': 'Maharashtra',
            'authCapital': 'No',
            'authorisedCapitalINR': 10000000,
        })
        assert duties(result) == (100, 200, 0)

    def test_precedence_per_field(self, make_rule_table):
        table = make_rule_table({'Goa': {
            'incorporation_duty': 50,
            'memorandum_duty': 200,
            'articles': {'flat': {'amount': 300}},
            'not_for_profit': {'memorandum_duty': 0},
            'no_share_capital': {'memorandum_duty': 50, 'articles_duty': 75},
        }})
        rule = table.get_state_rule('Goa')

        both = resolve_duties(
            rule, is_not_for_profit=True, has_authorized_capital=False,
            authorized_capital=Decimal('100000')
        )
        # memorandum from the not-for-profit tier, articles from the no-capital tier
        assert (both.incorporation_duty, both.memorandum_duty, both.articles_duty) == (50, 0, 75)
        assert both.total == Decimal('125')

        [memorandum, articles, incorporation] = both.traces
        assert memorandum.applied_rule == 'not_for_profit_override'
        assert articles.applied_rule == 'no_share_capital_override'
        assert incorporation.applied_rule == 'base'

    def test_combined_tier_beats_not_for_profit(self, make_rule_table):
        table = make_rule_table({'Goa': {
            'incorporation_duty': 50,
            'articles': {'flat': {'amount': 300}},
            'not_for_profit': {'incorporation_duty': 40, 'articles_duty': 10},
            'not_for_profit_no_capital': {'incorporation_duty': 5},
        }})
        rule = table.get_state_rule('Goa')

        breakdown = resolve_duties(
            rule, is_not_for_profit=True, has_authorized_capital=False,
            authorized_capital=Decimal('0')
        )
        assert breakdown.incorporation_duty == 5
        assert breakdown.articles_duty == 10
        assert breakdown.memorandum_duty == 200


class TestTraces:

    def test_trace_per_duty(self, calculator):
        result = calculator.calculate({'state': 'Delhi', 'authorisedCapitalINR': 1000000})

        steps = [trace.step_name for trace in result.traces]
        assert steps == [
            'resolve_memorandum_duty',
            'resolve_articles_duty',
            'resolve_incorporation_duty',
        ]

        articles = result.traces[1]
        assert articles.applied_rule == 'base:percent'
        assert articles.rule_source == 'Delhi'
        assert articles.input_facts['capital'] == Decimal('1000000')
        assert articles.formula is not None

    def test_override_trace_has_no_formula(self, calculator):
        result = calculator.calculate({'state': 'Delhi', 'whetherSec8Company': 'Yes'})

        articles = result.traces[1]
        assert articles.applied_rule == 'not_for_profit_override'
        assert articles.formula is None

    def test_trace_summary(self, calculator):
        summary = calculator.calculate({'state': 'Delhi'}).get_trace_summary()

        assert "Stamp duty trace" in summary
        assert "resolve_articles_duty" in summary


class TestStrictMode:

    def test_rejects_unknown_state(self, calculator):
        with pytest.raises(InputValidationError):
            calculator.calculate_strict({'state': 'Atlantis'})

    def test_clean_input(self, calculator):
        params = {'state': 'Delhi', 'authorisedCapitalINR': 1000000}
        assert calculator.calculate_strict(params) == calculator.calculate(params)


class TestCustomCalculator:

    def test_custom_rule_table(self, make_rule_table):
        calculator = FeeCalculator(make_rule_table(), default_capital=Decimal('1000000'))
        result = calculator.calculate({})

        # the test table has only the default rule
        assert result.applied_rule == 'default'
        assert result.rule_version == 'test'
        assert duties(result) == (20, 200, 1500)
        assert calculator.list_states() == []

    def test_custom_default_state(self):
        calculator = FeeCalculator(default_state='Goa')
        assert calculator.calculate({}).inputs.jurisdiction == 'Goa'


class TestOutput:
    """Serialized result"""

    def test_to_dict(self, calculator):
        data = calculator.calculate({'state': 'Delhi', 'authorisedCapitalINR': 1000000}).to_dict()

        assert data['success'] is True
        assert data['totals'] == {
            'totalRegistrationFees': 143,
            'totalStampDuty': 1710,
            'grandTotal': 1853,
        }
        assert data['stampDutyLines'][1] == {'label': 'Stamp Duty AOA', 'amountINR': 1500}
        assert data['combinedFeeTable'][7] == {'ordinal': 8, 'label': 'Stamp Duty AOA', 'amountINR': 1500}
        assert len(data['combinedFeeTable']) == 10
        assert data['currency'] == 'INR'
        assert data['ruleVersion'] == '2024.1'
        assert data['appliedRule'] == 'Delhi'
        assert 'Indicative' in data['disclaimer']
        assert 'traces' not in data

    def test_to_dict_with_traces(self, calculator):
        data = calculator.calculate({'state': 'Delhi'}).to_dict(include_traces=True)

        assert len(data['traces']) == 3
        assert data['traces'][1]['output_value'] == 150

    def test_summary(self, calculator):
        summary = calculator.calculate({'state': 'Delhi', 'authorisedCapitalINR': 1000000}).get_summary()

        assert "Fee details: Delhi" in summary
        assert "PANTAN fees" in summary
        assert "1,853" in summary


class TestModuleFunctions:

    def test_calculate_stamp_duty(self):
        data = calculate_stamp_duty({'state': 'Delhi', 'authorisedCapitalINR': 1000000})
        assert data['totals']['grandTotal'] == 1853

    def test_list_states(self):
        states = list_states()

        assert len(states) == 35
        assert states[0] == 'Delhi'
        assert 'default' not in states
