"""Unit tests for structured logging and metrics helpers"""

import json
import logging
from datetime import date
from prometheus_client import REGISTRY
from envelope_planner.domain.models import ProjectionResult, ProjectionWarning, WarningKind
from envelope_planner.infrastructure.observability.logging import CustomJsonFormatter
from envelope_planner.infrastructure.observability.metrics import record_projection, record_recommendation


def test_json_formatter_adds_service_fields():
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    record = logging.LogRecord("envelope_planner.test", logging.WARNING, __file__, 1, "Skipped", None, None)
    record.subject_id = "sp_1"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Skipped"
    assert payload["level"] == "WARNING"
    assert payload["service"] == "envelope-planner"
    assert payload["subject_id"] == "sp_1"
    assert payload["timestamp"]


def test_record_projection_counts_warnings():
    def warnings_seen():
        return REGISTRY.get_sample_value(
            "envelope_projection_warnings_total", {"kind": "missing_account"}
        ) or 0.0

    before = warnings_seen()
    result = ProjectionResult(
        projection_date=date(2025, 3, 1),
        account_projections={},
        timeline=[],
        total_available_cents=0,
        total_assigned_cents=0,
        total_spent_cents=0,
        warnings=[ProjectionWarning(kind=WarningKind.MISSING_ACCOUNT, message="gone", reference_id="acc_x")],
    )
    record_projection(result)

    assert warnings_seen() == before + 1


def test_record_recommendation_by_phase():
    before = REGISTRY.get_sample_value("envelope_allocation_recommendation_total", {"phase": "funded"}) or 0.0
    record_recommendation("funded")
    assert REGISTRY.get_sample_value("envelope_allocation_recommendation_total", {"phase": "funded"}) == before + 1
