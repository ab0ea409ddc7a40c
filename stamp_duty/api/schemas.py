"""API request/response schemas (Pydantic)"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union


Amount = Union[int, float]


# ============================================================================
# Fee calculation
# ============================================================================

class FeeLine(BaseModel):
    """One registration fee or stamp duty line"""
    label: str
    amount_inr: Amount = Field(..., alias="amountINR")

    class Config:
        populate_by_name = True


class FeeTableRow(FeeLine):
    """Row of the combined fee table"""
    ordinal: int


class FeeTotals(BaseModel):
    """Subtotals and grand total"""
    total_registration_fees: Amount = Field(..., alias="totalRegistrationFees")
    total_stamp_duty: Amount = Field(..., alias="totalStampDuty")
    grand_total: Amount = Field(..., alias="grandTotal")

    class Config:
        populate_by_name = True


class FeeCalculationResponse(BaseModel):
    """Fee calculation response

    The request body is a free-form object: every field is optional and
    unrecognized values fall back to defaults unless ``strict=true``.
    """
    success: bool = True
    inputs: Dict[str, Any]
    registration_fee_lines: List[FeeLine] = Field(..., alias="registrationFeeLines")
    stamp_duty_lines: List[FeeLine] = Field(..., alias="stampDutyLines")
    combined_fee_table: List[FeeTableRow] = Field(..., alias="combinedFeeTable")
    totals: FeeTotals
    currency: str = "INR"
    disclaimer: str = ""
    rule_version: str = Field(..., alias="ruleVersion")
    applied_rule: str = Field(..., alias="appliedRule")
    traces: Optional[List[Dict[str, Any]]] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "success": True,
                "inputs": {
                    "entityCategory": "Company",
                    "natureOfService": "Name reservation and Company Incorporation",
                    "subService": "Incorporation of a company (SPICe+ Part B)",
                    "isOpcOrSmallCompany": False,
                    "hasAuthorizedCapital": True,
                    "authorizedCapitalAmount": 1000000,
                    "isNotForProfit": False,
                    "jurisdiction": "Delhi"
                },
                "registrationFeeLines": [{"label": "PANTAN fees", "amountINR": 143}],
                "stampDutyLines": [{"label": "Stamp Duty AOA", "amountINR": 1500}],
                "combinedFeeTable": [{"ordinal": 8, "label": "Stamp Duty AOA", "amountINR": 1500}],
                "totals": {"totalRegistrationFees": 143, "totalStampDuty": 1710, "grandTotal": 1853},
                "currency": "INR",
                "disclaimer": "Indicative only",
                "ruleVersion": "2024.1",
                "appliedRule": "Delhi"
            }
        }


# ============================================================================
# Form support
# ============================================================================

class StatesResponse(BaseModel):
    """Jurisdictions in rule table order"""
    states: List[str]


class FormOptionsResponse(BaseModel):
    """Dropdown values of the fee form"""
    options: Dict[str, List[str]]


class RuleMetadataResponse(BaseModel):
    """Rule table metadata"""
    version: str
    effective_date: str
    source: str
    description: str
    currency: str
    jurisdictions: int


# ============================================================================
# Errors
# ============================================================================

class ErrorResponse(BaseModel):
    """Error response"""
    success: bool = False
    code: str
    message: str
    details: Optional[Any] = None
