"""Runtime configuration (environment variables)"""

import os
from decimal import Decimal
from pathlib import Path


PACKAGE_DIR = Path(__file__).parent

# Rule table location (packaged YAML by default)
RULES_FILE = os.getenv(
    "STAMP_DUTY_RULES_FILE",
    str(PACKAGE_DIR / "rules" / "stamp_duty_rules.yaml")
)

# Fallbacks for missing form fields
DEFAULT_STATE = os.getenv("STAMP_DUTY_DEFAULT_STATE", "Maharashtra")
DEFAULT_CAPITAL = Decimal(os.getenv("STAMP_DUTY_DEFAULT_CAPITAL", "100000"))

# Upper bound for authorised capital (10^30 INR); larger values are clamped
MAX_CAPITAL = Decimal("1E+30")

DEFAULT_ENTITY_CATEGORY = "Company"
DEFAULT_NATURE_OF_SERVICE = "Name reservation and Company Incorporation"
DEFAULT_SUB_SERVICE = "Incorporation of a company (SPICe+ Part B)"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Comma separated; "*" allows every origin
CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]
