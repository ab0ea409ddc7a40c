"""Fee calculator usage examples"""

from decimal import Decimal

from stamp_duty.core import FeeCalculator, InputValidationError


def example_basic_case():
    """Basic case: Delhi, 10 lakh authorised capital"""
    print("=" * 60)
    print("Example 1: Delhi, authorised capital 10,00,000")
    print("=" * 60)

    calculator = FeeCalculator()
    result = calculator.calculate({
        "enquireFeeFor": "Company",
        "authCapital": "Yes",
        "authorisedCapitalINR": 1000000,
        "whetherSec8Company": "No",
        "state": "Delhi",
    })

    print(result.get_summary())
    print("\n" + result.get_trace_summary())


def example_section8_company():
    """Section 8 company in Delhi: MoA and AoA duty waived"""
    print("=" * 60)
    print("Example 2: Section 8 (not-for-profit) company, Delhi")
    print("=" * 60)

    calculator = FeeCalculator()
    result = calculator.calculate({
        "authorisedCapitalINR": 1000000,
        "whetherSec8Company": "Yes",
        "state": "Delhi",
    })

    print(result.get_summary())


def example_high_capital_maharashtra():
    """Maharashtra per-unit duty, capped, and waived from 250 crore"""
    print("=" * 60)
    print("Example 3: Maharashtra, per 5 lakh of capital")
    print("=" * 60)

    calculator = FeeCalculator()
    for capital in (Decimal("100000"), Decimal("50000000"), Decimal("2500000000")):
        result = calculator.calculate({"state": "Maharashtra", "authorisedCapitalINR": capital})
        articles = result.get_line("Stamp Duty AOA")
        print(f"capital {capital:>14,} -> AoA duty {articles.amount:>10,} {result.currency}")


def example_strict_mode():
    """Strict mode rejects values that would otherwise be defaulted"""
    print("=" * 60)
    print("Example 4: strict mode")
    print("=" * 60)

    calculator = FeeCalculator()
    try:
        calculator.calculate_strict({"state": "Atlantis", "authorisedCapitalINR": "ten lakh"})
    except InputValidationError as e:
        print(f"{e.code}: {e.message}")
        for problem in e.details:
            print(f"  - {problem}")

    # The lenient path falls back to the default rule and capital
    result = calculator.calculate({"state": "Atlantis", "authorisedCapitalINR": "ten lakh"})
    print(f"\nlenient: rule {result.applied_rule}, grand total {result.grand_total:,}")


if __name__ == "__main__":
    example_basic_case()
    example_section8_company()
    example_high_capital_maharashtra()
    example_strict_mode()
