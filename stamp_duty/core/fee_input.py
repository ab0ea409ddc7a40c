"""FeeInput: normalized fee form parameters

The normalizer never raises: every field has a deterministic fallback so
that the calculator stays available for indicative use. Unrecognized
yes/no answers silently become "No". Callers that need to reject bad
input use ``parse_input_strict`` instead.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .. import config
from .exceptions import InputValidationError
from .rule_table import RuleTable, get_default_rule_table


YES_VALUES = ('yes', 'y')
NO_VALUES = ('no', 'n')

# Accepted spellings per field; the first non-null value wins
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    'entity_category': ('entityCategory', 'entity_category', 'enquireFeeFor', 'enquire_fee_for'),
    'nature_of_service': ('natureOfService', 'nature_of_service'),
    'sub_service': ('subService', 'sub_service'),
    'opc_small_company': ('opcSmallCompany', 'opc_small_company'),
    'has_authorized_capital': (
        'hasAuthorizedCapitalFlag', 'has_authorized_capital_flag', 'authCapital', 'auth_capital'
    ),
    'has_no_share_capital': ('hasNoShareCapitalFlag', 'has_no_share_capital_flag'),
    'authorized_capital': (
        'authorizedCapitalAmount', 'authorized_capital_amount',
        'authorisedCapitalINR', 'authorisedCapital', 'authorised_capital',
    ),
    'is_not_for_profit': (
        'isNotForProfitFlag', 'is_not_for_profit_flag', 'whetherSec8Company', 'whether_sec8_company'
    ),
    'jurisdiction': ('jurisdiction', 'state'),
}

YES_NO_FIELDS = ('opc_small_company', 'has_authorized_capital', 'has_no_share_capital', 'is_not_for_profit')


@dataclass(frozen=True)
class FeeInput:
    """Canonical parameters of one fee calculation

    Attributes:
        entity_category: entity the fee is enquired for (echoed)
        nature_of_service: service label (echoed)
        sub_service: sub-service label (echoed)
        is_opc_or_small_company: OPC / small company answer (echoed)
        has_authorized_capital: whether the company has authorised share capital
        authorized_capital: authorised capital in INR (never negative)
        is_not_for_profit: Section 8 (not-for-profit) company
        jurisdiction: canonical jurisdiction key, or the trimmed raw name
    """

    entity_category: str
    nature_of_service: str
    sub_service: str
    is_opc_or_small_company: bool
    has_authorized_capital: bool
    authorized_capital: Decimal
    is_not_for_profit: bool
    jurisdiction: str

    @property
    def effective_capital(self) -> Decimal:
        """Capital used by the duty formulas (0 without authorised capital)"""
        return self.authorized_capital if self.has_authorized_capital else Decimal('0')

    def to_dict(self) -> Dict[str, Any]:
        capital = self.authorized_capital
        return {
            'entityCategory': self.entity_category,
            'natureOfService': self.nature_of_service,
            'subService': self.sub_service,
            'isOpcOrSmallCompany': self.is_opc_or_small_company,
            'hasAuthorizedCapital': self.has_authorized_capital,
            'authorizedCapitalAmount': int(capital) if capital == capital.to_integral_value() else float(capital),
            'isNotForProfit': self.is_not_for_profit,
            'jurisdiction': self.jurisdiction,
        }


def _lookup(params: Mapping[str, Any], name: str) -> Any:
    for alias in FIELD_ALIASES[name]:
        value = params.get(alias)
        if value is not None:
            return value
    return None


def coerce_yes_no(value: Any) -> bool:
    """Yes/no answer to bool

    ``True``, "yes" and "y" (any case, surrounding blanks ignored) are yes;
    everything else, including None and unrecognized text, is no.
    """
    if value is True:
        return True
    if value is None or value is False:
        return False
    return str(value).strip().lower() in YES_VALUES


def _is_yes_no(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    return str(value).strip().lower() in YES_VALUES + NO_VALUES + ('true', 'false')


def _strict_yes_no(value: Any) -> bool:
    if isinstance(value, str) and value.strip().lower() == 'true':
        return True
    return coerce_yes_no(value)


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Finite Decimal from a number or numeric string, else None"""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))

    if isinstance(value, (int, Decimal)):
        number = Decimal(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    return number if number.is_finite() else None


def parse_capital(value: Any, default_capital: Optional[Decimal] = None) -> Decimal:
    """Authorised capital from loosely typed input

    Args:
        value: number, numeric string, or anything else
        default_capital: fallback for missing or non-numeric input

    Returns:
        Capital in INR, clamped to ``[0, config.MAX_CAPITAL]``
    """
    if default_capital is None:
        default_capital = config.DEFAULT_CAPITAL

    number = _to_decimal(value)
    if number is None:
        number = Decimal(default_capital)

    return min(max(number, Decimal('0')), config.MAX_CAPITAL)


def normalize_state(
    value: Any,
    rule_table: Optional[RuleTable] = None,
    default_state: Optional[str] = None
) -> str:
    """Canonical jurisdiction name

    Args:
        value: user supplied jurisdiction
        rule_table: table used for the case-insensitive match
        default_state: used for missing, blank or non-string input

    Returns:
        The matching rule table key, otherwise the trimmed input as given
    """
    if default_state is None:
        default_state = config.DEFAULT_STATE

    if not isinstance(value, str) or not value.strip():
        return default_state

    if rule_table is None:
        rule_table = get_default_rule_table()
    return rule_table.resolve_state(value) or value.strip()


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    return str(value).strip() or default


def parse_input(
    params: Optional[Mapping[str, Any]] = None,
    rule_table: Optional[RuleTable] = None,
    default_state: Optional[str] = None,
    default_capital: Optional[Decimal] = None
) -> FeeInput:
    """Normalize raw form parameters into a FeeInput

    Never raises for malformed values; see the module docstring.

    Unlike the other yes/no flags, a company counts as having authorised
    capital when neither ``hasAuthorizedCapitalFlag`` nor
    ``hasNoShareCapitalFlag`` is given (the fee form pre-selects "Yes").

    Args:
        params: raw key/value record (camelCase, form or snake_case field names)
        rule_table: table used for jurisdiction matching
        default_state: jurisdiction used when none is given
        default_capital: capital used when none (or garbage) is given

    Returns:
        FeeInput

    Example:
        >>> parse_input({'state': 'delhi', 'authorisedCapitalINR': '1000000'}).jurisdiction
        'Delhi'
    """
    params = params if isinstance(params, Mapping) else {}

    has_capital_flag = _lookup(params, 'has_authorized_capital')
    no_share_capital_flag = _lookup(params, 'has_no_share_capital')
    if has_capital_flag is not None:
        has_authorized_capital = coerce_yes_no(has_capital_flag)
    elif no_share_capital_flag is not None:
        has_authorized_capital = not coerce_yes_no(no_share_capital_flag)
    else:
        # The fee form pre-selects "Yes" for authorised capital
        has_authorized_capital = True

    return FeeInput(
        entity_category=_text(_lookup(params, 'entity_category'), config.DEFAULT_ENTITY_CATEGORY),
        nature_of_service=_text(_lookup(params, 'nature_of_service'), config.DEFAULT_NATURE_OF_SERVICE),
        sub_service=_text(_lookup(params, 'sub_service'), config.DEFAULT_SUB_SERVICE),
        is_opc_or_small_company=coerce_yes_no(_lookup(params, 'opc_small_company')),
        has_authorized_capital=has_authorized_capital,
        authorized_capital=parse_capital(_lookup(params, 'authorized_capital'), default_capital),
        is_not_for_profit=coerce_yes_no(_lookup(params, 'is_not_for_profit')),
        jurisdiction=normalize_state(_lookup(params, 'jurisdiction'), rule_table, default_state),
    )


def validate_input(
    params: Optional[Mapping[str, Any]],
    rule_table: Optional[RuleTable] = None
) -> List[str]:
    """Problems that strict mode rejects

    Args:
        params: raw key/value record
        rule_table: table used for jurisdiction matching

    Returns:
        One message per problem (empty when the input is clean)
    """
    if params is None:
        return []
    if not isinstance(params, Mapping):
        return ["request body must be an object"]

    if rule_table is None:
        rule_table = get_default_rule_table()
    problems = []

    for name in YES_NO_FIELDS:
        value = _lookup(params, name)
        if value is not None and not _is_yes_no(value):
            problems.append(f"{FIELD_ALIASES[name][0]}: expected Yes or No, got {value!r}")

    capital = _lookup(params, 'authorized_capital')
    if capital is not None:
        number = _to_decimal(capital)
        if number is None:
            problems.append(f"authorizedCapitalAmount: expected a number, got {capital!r}")
        elif number < 0:
            problems.append(f"authorizedCapitalAmount: must not be negative, got {capital!r}")
        elif number > config.MAX_CAPITAL:
            problems.append(
                f"authorizedCapitalAmount: must not exceed {config.MAX_CAPITAL}, got {capital!r}"
            )

    jurisdiction = _lookup(params, 'jurisdiction')
    if jurisdiction is not None:
        if not isinstance(jurisdiction, str) or not jurisdiction.strip():
            problems.append(f"jurisdiction: expected a jurisdiction name, got {jurisdiction!r}")
        elif rule_table.resolve_state(jurisdiction) is None:
            problems.append(f"jurisdiction: unknown jurisdiction {jurisdiction!r}")

    has_capital_flag = _lookup(params, 'has_authorized_capital')
    no_share_capital_flag = _lookup(params, 'has_no_share_capital')
    if (
        has_capital_flag is not None
        and no_share_capital_flag is not None
        and _is_yes_no(has_capital_flag)
        and _is_yes_no(no_share_capital_flag)
        and _strict_yes_no(has_capital_flag) == _strict_yes_no(no_share_capital_flag)
    ):
        problems.append("hasAuthorizedCapitalFlag and hasNoShareCapitalFlag contradict each other")

    return problems


def parse_input_strict(
    params: Optional[Mapping[str, Any]] = None,
    rule_table: Optional[RuleTable] = None,
    default_state: Optional[str] = None,
    default_capital: Optional[Decimal] = None
) -> FeeInput:
    """Like ``parse_input`` but rejects input that would be silently defaulted

    Raises:
        InputValidationError: with the list of problems in ``details``
    """
    problems = validate_input(params, rule_table)
    if problems:
        raise InputValidationError("Validation failed", details=problems)

    params = dict(params or {})
    # "true"/"false" are accepted in strict mode; map them before lenient coercion
    for name in YES_NO_FIELDS:
        for alias in FIELD_ALIASES[name]:
            value = params.get(alias)
            if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
                params[alias] = _strict_yes_no(value)

    return parse_input(params, rule_table, default_state, default_capital)
