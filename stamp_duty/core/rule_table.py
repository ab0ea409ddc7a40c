"""RuleTable: state-wise stamp duty rule table"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .. import config
from .exceptions import RuleTableError
from .formulas import FormulaVariant, formula_from_dict, to_amount


logger = logging.getLogger(__name__)

DEFAULT_RULE_KEY = 'default'

OVERRIDE_FIELDS = ('incorporation_duty', 'memorandum_duty', 'articles_duty')

STATE_FIELDS = (
    'incorporation_duty',
    'memorandum_duty',
    'articles',
    'no_share_capital',
    'not_for_profit',
    'not_for_profit_no_capital',
)


@dataclass(frozen=True)
class DutyOverrides:
    """Partial replacement of duty amounts for a class of entity

    Fields left as None fall through to the next precedence tier.
    """

    incorporation_duty: Optional[Decimal] = None
    memorandum_duty: Optional[Decimal] = None
    articles_duty: Optional[Decimal] = None

    def get(self, duty_field: str) -> Optional[Decimal]:
        return getattr(self, duty_field)

    def is_empty(self) -> bool:
        return all(self.get(name) is None for name in OVERRIDE_FIELDS)

    @classmethod
    def from_dict(cls, data: Any, where: str) -> "DutyOverrides":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise RuleTableError(f"{where}: overrides must be a mapping, got {data!r}")

        unknown = sorted(str(key) for key in data if key not in OVERRIDE_FIELDS)
        if unknown:
            raise RuleTableError(f"{where}: unknown override field(s) {', '.join(unknown)}")

        return cls(**{
            name: to_amount(value, f"{where}.{name}")
            for name, value in data.items()
            if value is not None
        })


@dataclass(frozen=True)
class StateRule:
    """Duty schedule of one jurisdiction

    Attributes:
        name: jurisdiction key
        incorporation_duty: duty on the SPICe+ Part B incorporation form
        memorandum_duty: duty on the memorandum of association
        articles_formula: formula for the articles of association duty
        no_share_capital: overrides for companies without share capital
        not_for_profit: overrides for Section 8 (not-for-profit) companies
        not_for_profit_no_capital: overrides when both of the above hold
    """

    name: str
    incorporation_duty: Decimal
    memorandum_duty: Decimal
    articles_formula: FormulaVariant
    no_share_capital: DutyOverrides = field(default_factory=DutyOverrides)
    not_for_profit: DutyOverrides = field(default_factory=DutyOverrides)
    not_for_profit_no_capital: DutyOverrides = field(default_factory=DutyOverrides)


@dataclass(frozen=True)
class FeeSchedule:
    """Jurisdiction-independent registration fees and duty fallbacks"""

    normal_fee: Decimal = Decimal('0')
    additional_fee: Decimal = Decimal('0')
    moa_registration_fee: Decimal = Decimal('0')
    aoa_registration_fee: Decimal = Decimal('0')
    pantan_fee: Decimal = Decimal('143')
    spice_part_b_stamp_duty: Decimal = Decimal('10')
    default_memorandum_duty: Decimal = Decimal('200')

    @classmethod
    def from_dict(cls, data: Any) -> "FeeSchedule":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise RuleTableError(f"fees: expected a mapping, got {data!r}")

        known = cls.__dataclass_fields__
        unknown = sorted(str(key) for key in data if key not in known)
        if unknown:
            raise RuleTableError(f"fees: unknown fee(s) {', '.join(unknown)}")

        return cls(**{
            name: to_amount(value, f"fees.{name}")
            for name, value in data.items()
        })


class RuleTable:
    """Loads the stamp duty rule table and answers jurisdiction lookups

    The table is validated completely at construction time; an invalid
    entry raises ``RuleTableError`` and no table is produced. Once built
    the table is read-only and safe to share between threads.

    Attributes:
        version: rule table version
        effective_date: date the rates apply from
        source: publication the rates are taken from
        fees: registration fees and duty fallbacks
        disclaimer: text returned with every calculation
        form_options: allowed values of the client form dropdowns
    """

    def __init__(self, rules_file: Optional[str] = None):
        """Load the rule table from YAML

        Args:
            rules_file: rule table path (default: ``config.RULES_FILE``)

        Raises:
            FileNotFoundError: the file does not exist
            yaml.YAMLError: the file is not valid YAML
            RuleTableError: an entry violates the rule table invariants
        """
        self.rules_file = rules_file or config.RULES_FILE
        data = self._load_rules(self.rules_file)
        self._build(data)
        logger.info(
            "Loaded stamp duty rules %s from %s (%d jurisdictions)",
            self.version, self.rules_file, len(self.list_states())
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: str = "<dict>") -> "RuleTable":
        """Build a rule table from an in-memory document (same layout as the YAML)"""
        table = cls.__new__(cls)
        table.rules_file = source
        table._build(data)
        return table

    @staticmethod
    def _load_rules(rules_file: str) -> Any:
        rules_path = Path(rules_file)

        if not rules_path.exists():
            raise FileNotFoundError(f"Rule table not found: {rules_path}")

        with open(rules_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)

    def _build(self, data: Any) -> None:
        if not isinstance(data, Mapping):
            raise RuleTableError(f"{self.rules_file}: rule table must be a mapping")

        self.version = str(data.get('version', 'unknown'))
        self.effective_date = str(data.get('effective_date', ''))
        self.source = data.get('source', '')
        self.description = data.get('description', '')
        self.currency = data.get('currency', 'INR')
        self.disclaimer = data.get('disclaimer', '')
        self.fees = FeeSchedule.from_dict(data.get('fees'))
        self.form_options = MappingProxyType({
            name: tuple(values)
            for name, values in (data.get('form_options') or {}).items()
        })

        states = data.get('states')
        if not isinstance(states, Mapping) or not states:
            raise RuleTableError(f"{self.rules_file}: 'states' must be a non-empty mapping")
        if DEFAULT_RULE_KEY not in states:
            raise RuleTableError(f"{self.rules_file}: missing '{DEFAULT_RULE_KEY}' rule")

        rules: Dict[str, StateRule] = {}
        for name, entry in states.items():
            rules[str(name)] = self._parse_state_rule(str(name), entry)

        self._rules = MappingProxyType(rules)
        self._lookup = MappingProxyType({
            name.lower(): name for name in rules if name != DEFAULT_RULE_KEY
        })

    def _parse_state_rule(self, name: str, entry: Any) -> StateRule:
        """Validate one ``states`` entry and turn it into a StateRule

        Args:
            name: jurisdiction key
            entry: raw mapping from the rule table

        Returns:
            StateRule

        Raises:
            RuleTableError: unknown keys, bad amounts, or not exactly one articles formula
        """
        where = f"states.{name}"

        if not isinstance(entry, Mapping):
            raise RuleTableError(f"{where}: expected a mapping, got {entry!r}")

        unknown = sorted(str(key) for key in entry if key not in STATE_FIELDS)
        if unknown:
            raise RuleTableError(f"{where}: unknown field(s) {', '.join(unknown)}")

        if entry.get('incorporation_duty') is None:
            incorporation_duty = self.fees.spice_part_b_stamp_duty
        else:
            incorporation_duty = to_amount(entry['incorporation_duty'], f"{where}.incorporation_duty")

        if entry.get('memorandum_duty') is None:
            memorandum_duty = self.fees.default_memorandum_duty
        else:
            memorandum_duty = to_amount(entry['memorandum_duty'], f"{where}.memorandum_duty")

        if 'articles' not in entry:
            raise RuleTableError(f"{where}: missing articles formula")

        return StateRule(
            name=name,
            incorporation_duty=incorporation_duty,
            memorandum_duty=memorandum_duty,
            articles_formula=formula_from_dict(entry['articles'], f"{where}.articles"),
            no_share_capital=DutyOverrides.from_dict(
                entry.get('no_share_capital'), f"{where}.no_share_capital"
            ),
            not_for_profit=DutyOverrides.from_dict(
                entry.get('not_for_profit'), f"{where}.not_for_profit"
            ),
            not_for_profit_no_capital=DutyOverrides.from_dict(
                entry.get('not_for_profit_no_capital'), f"{where}.not_for_profit_no_capital"
            ),
        )

    @property
    def rules(self) -> Mapping[str, StateRule]:
        """All rules, ``default`` included, in table order"""
        return self._rules

    def has_state(self, key: str) -> bool:
        """Exact key check (``default`` counts as present)"""
        return key in self._rules

    def get_state_rule(self, key: str) -> StateRule:
        """Rule for ``key``, or the ``default`` rule when the key is unknown"""
        return self._rules.get(key) or self._rules[DEFAULT_RULE_KEY]

    def resolve_state(self, name: str) -> Optional[str]:
        """Case-insensitive lookup of a jurisdiction name

        Args:
            name: user supplied jurisdiction name

        Returns:
            The canonical key, or None. ``default`` is never returned.
        """
        if not isinstance(name, str):
            return None
        return self._lookup.get(name.strip().lower())

    def list_states(self) -> List[str]:
        """Jurisdiction names in table order, without ``default``"""
        return [name for name in self._rules if name != DEFAULT_RULE_KEY]

    def get_form_options(self) -> Dict[str, Tuple[str, ...]]:
        options = dict(self.form_options)
        options['states'] = tuple(self.list_states())
        return options

    def get_rule_metadata(self) -> Dict[str, Any]:
        """Rule table metadata

        Returns:
            version, effective date, source, description and size
        """
        return {
            'version': self.version,
            'effective_date': self.effective_date,
            'source': self.source,
            'description': self.description,
            'currency': self.currency,
            'jurisdictions': len(self.list_states()),
        }

    def __len__(self) -> int:
        return len(self._rules)

    def __str__(self) -> str:
        return f"RuleTable(v{self.version}, {len(self.list_states())} jurisdictions)"


_default_rule_table: Optional[RuleTable] = None


def get_default_rule_table() -> RuleTable:
    """Process-wide rule table loaded from ``config.RULES_FILE``

    Returns:
        The shared RuleTable instance
    """
    global _default_rule_table
    if _default_rule_table is None:
        _default_rule_table = RuleTable()
    return _default_rule_table


def reset_default_rule_table() -> None:
    """Drop the shared rule table (mainly for tests)"""
    global _default_rule_table
    _default_rule_table = None
