"""POST /v1/allocation/* - cash-flow recommendations and percentage splits"""

import logging
import time
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request

from envelope_planner.api.dependencies import get_request_id, get_today
from envelope_planner.api.v1.schemas import (
    GoalsRequest,
    GoalsResponse,
    PercentagesRequest,
    PercentagesResponse,
    RecommendRequest,
    RecommendResponse,
)
from envelope_planner.domain.allocation import recommend
from envelope_planner.domain.exceptions import InvalidInputError
from envelope_planner.domain.multi_goal import allocate_goals
from envelope_planner.domain.percentages import split_contribution, update_allocation
from envelope_planner.infrastructure.observability.logging import log_recommendation
from envelope_planner.infrastructure.observability.metrics import record_recommendation

router = APIRouter()


@router.post("/allocation/recommend", response_model=RecommendResponse)
def recommend_cash_flow(
    request_body: RecommendRequest,
    request: Request,
    today: date = Depends(get_today),
):
    """Per-payday contribution for a single target and due date"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = recommend(
            starting_cents=request_body.starting_cents,
            target_cents=request_body.target_cents,
            due_date=request_body.due_date,
            pay_frequency=request_body.pay_frequency,
            bill_frequency=request_body.bill_frequency.to_domain(),
            next_pay_date=request_body.next_pay_date,
            today=today,
            pay_day_of_month=request_body.pay_day_of_month,
        )
    except InvalidInputError as e:
        logging.warning(f"Invalid recommendation input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    duration_ms = (time.time() - start_time) * 1000
    record_recommendation(result.phase.value)
    log_recommendation(request_id, result.recommended_cents, result.phase.value, duration_ms)

    return RecommendResponse.model_validate(result)


@router.post("/allocation/goals", response_model=GoalsResponse)
def allocate_multi_goal(
    request_body: GoalsRequest,
    request: Request,
    today: date = Depends(get_today),
):
    """
    Blend a horizon target and an autopilot bill on one envelope.

    Returns the combined cash flow plus coverage, setup-phase and affordability detail.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    if request_body.horizon is None and request_body.autopilot is None:
        raise HTTPException(status_code=422, detail="At least one of horizon or autopilot is required")

    try:
        allocation = allocate_goals(
            starting_cents=request_body.starting_cents,
            pay_settings=request_body.pay_settings.to_domain(),
            horizon=request_body.horizon.to_domain() if request_body.horizon else None,
            autopilot=request_body.autopilot.to_domain() if request_body.autopilot else None,
            existing_commitments_cents=request_body.existing_commitments_cents,
            account_balance_cents=request_body.account_balance_cents,
            manual_override_cents=request_body.manual_override_cents,
            today=today,
        )
    except InvalidInputError as e:
        logging.warning(f"Invalid goal input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    duration_ms = (time.time() - start_time) * 1000
    record_recommendation("multi_goal")
    log_recommendation(request_id, allocation.cash_flow_cents, "multi_goal", duration_ms)

    return GoalsResponse.model_validate(allocation)


@router.post("/allocation/percentages", response_model=PercentagesResponse)
def update_percentages(request_body: PercentagesRequest, request: Request):
    """Apply one percentage change; optionally split a contribution by the result"""
    request_id = get_request_id(request)

    try:
        entries = update_allocation(request_body.entries, request_body.changed_id, request_body.new_value)
    except InvalidInputError as e:
        logging.warning(f"Invalid percentage update: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    contributions = None
    if request_body.total_cents is not None:
        contributions = split_contribution(request_body.total_cents, entries)

    return PercentagesResponse(entries=entries, contributions=contributions)
