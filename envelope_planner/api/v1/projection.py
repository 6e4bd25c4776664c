"""POST /v1/projection - simulate balances forward to a target date"""

import logging
import time
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request

from envelope_planner.api.dependencies import get_request_id, get_today
from envelope_planner.api.v1.schemas import ProjectionRequest, ProjectionResponse
from envelope_planner.domain.exceptions import InvalidInputError
from envelope_planner.domain.projection import project
from envelope_planner.infrastructure.observability.logging import log_projection
from envelope_planner.infrastructure.observability.metrics import record_projection, record_projection_failure

router = APIRouter()


@router.post("/projection", response_model=ProjectionResponse)
def create_projection(
    request_body: ProjectionRequest,
    request: Request,
    today: date = Depends(get_today),
):
    """
    Project account and envelope balances on the target date.

    Flow:
    1. Convert request snapshots to domain objects
    2. Generate and replay the event timeline
    3. Record metrics and logs
    4. Return per-account results, timeline and warnings
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = project(
            target_date=request_body.target_date,
            accounts=[a.to_domain() for a in request_body.accounts],
            envelopes=[e.to_domain() for e in request_body.envelopes],
            scheduled_payments=[p.to_domain() for p in request_body.scheduled_payments],
            pay_settings=request_body.pay_settings.to_domain(),
            scenario=request_body.scenario.to_domain() if request_body.scenario else None,
            today=today,
        )

    except InvalidInputError as e:
        record_projection_failure("invalid")
        logging.warning(f"Invalid projection input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        record_projection_failure("error")
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_projection(result)
    log_projection(
        request_id,
        result.projection_date.isoformat(),
        len(result.timeline),
        len(result.warnings),
        duration_ms,
    )

    return ProjectionResponse.model_validate(result)
