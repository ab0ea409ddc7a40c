"""Shared fixtures"""

import copy

import pytest

from stamp_duty.core import RuleTable, FeeCalculator


BASE_DOCUMENT = {
    'version': 'test',
    'currency': 'INR',
    'disclaimer': 'test rules',
    'fees': {'pantan_fee': 143},
    'states': {
        'default': {
            'incorporation_duty': 20,
            'memorandum_duty': 200,
            'articles': {'percent': {'rate': 0.15, 'max': 2500000}},
        },
    },
}


@pytest.fixture
def make_rule_table():
    """Build an in-memory rule table with extra ``states`` entries"""
    def _make(states=None, **top_level):
        document = copy.deepcopy(BASE_DOCUMENT)
        document['states'].update(states or {})
        document.update(top_level)
        return RuleTable.from_dict(document)
    return _make


@pytest.fixture
def calculator():
    """Calculator on the packaged rule table"""
    return FeeCalculator()
