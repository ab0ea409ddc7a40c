"""Fee calculation API router"""

from fastapi import APIRouter, Body, Depends, Query
from typing import Any, Dict, Optional

from ...core import FeeCalculator
from ..schemas import (
    ErrorResponse,
    FeeCalculationResponse,
    FormOptionsResponse,
    RuleMetadataResponse,
    StatesResponse,
)

router = APIRouter()


def get_fee_calculator() -> FeeCalculator:
    """Calculator bound to the shared rule table"""
    return FeeCalculator()


@router.post(
    "/stamp-duty",
    response_model=FeeCalculationResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
async def stamp_duty(
    params: Optional[Dict[str, Any]] = Body(None),
    strict: bool = Query(False, description="Reject values that would otherwise be defaulted"),
    traces: bool = Query(False, description="Include per-duty calculation traces"),
    calculator: FeeCalculator = Depends(get_fee_calculator)
):
    """Rule-based stamp duty & registration fees

    Accepts the fee form fields (all optional) and returns the fee table.
    """
    if strict:
        result = calculator.calculate_strict(params)
    else:
        result = calculator.calculate(params)

    return FeeCalculationResponse(**result.to_dict(include_traces=traces))


@router.get("/states", response_model=StatesResponse)
async def list_states(calculator: FeeCalculator = Depends(get_fee_calculator)):
    """Jurisdictions for the state dropdown"""
    return StatesResponse(states=calculator.list_states())


@router.get("/options", response_model=FormOptionsResponse)
async def form_options(calculator: FeeCalculator = Depends(get_fee_calculator)):
    """Dropdown values of the fee form"""
    options = calculator.rule_table.get_form_options()
    return FormOptionsResponse(options={name: list(values) for name, values in options.items()})


@router.get("/rules", response_model=RuleMetadataResponse)
async def rule_metadata(calculator: FeeCalculator = Depends(get_fee_calculator)):
    """Version and source of the rule table in use"""
    return RuleMetadataResponse(**calculator.rule_table.get_rule_metadata())
