"""
Survey pipeline orchestration.

Runs the fixed sequence for one webhook call:
fetch deal -> fetch contact -> compose -> authenticate -> submit -> write back.
Each step runs once; the first failure aborts the rest.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from common.config import DEFAULT_WRITEBACK_FIELDS
from common.exceptions import ProxyException, ValidationException
from common.field_mapping import DEFAULT_FIELD_MAPPING, FieldRule
from common.models import ReconciliationRecord, SurveyPayload
from common.payload_composer import compose_payload
from common.reconciliation import record_failed_writeback

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """States of a single pipeline run."""

    RECEIVED = "RECEIVED"
    DEAL_FETCHED = "DEAL_FETCHED"
    CONTACT_FETCHED = "CONTACT_FETCHED"
    PAYLOAD_COMPOSED = "PAYLOAD_COMPOSED"
    AUTHENTICATED = "AUTHENTICATED"
    SUBMITTED = "SUBMITTED"
    WRITTEN_BACK = "WRITTEN_BACK"
    DONE = "DONE"
    FAILED = "FAILED"


# Step flag reported in responses for each state transition
STEP_FLAGS: Dict[PipelineState, str] = {
    PipelineState.DEAL_FETCHED: "dealDataRetrieved",
    PipelineState.CONTACT_FETCHED: "contactDataRetrieved",
    PipelineState.PAYLOAD_COMPOSED: "payloadComposed",
    PipelineState.AUTHENTICATED: "authTokenObtained",
    PipelineState.SUBMITTED: "surveySent",
    PipelineState.WRITTEN_BACK: "crmUpdated",
}

STEP_OK = "ok"
STEP_PENDING = "pending"
STEP_FAILED = "failed"
STEP_SKIPPED = "skipped"


class PipelineResult(BaseModel):
    """Outcome of a successful run."""

    deal_id: str
    contact_id: str
    state: PipelineState = PipelineState.DONE
    payload: SurveyPayload
    result: Any = None
    steps: Dict[str, str] = Field(default_factory=dict)
    history: List[PipelineState] = Field(default_factory=list)


class PipelineFailure(ProxyException):
    """
    Raised when a step fails.

    Carries the step flags so callers can tell, e.g., that the survey was
    submitted even though the writeback failed.
    """

    def __init__(
        self,
        cause: Exception,
        failed_state: PipelineState,
        steps: Dict[str, str],
        extra: Optional[dict] = None,
    ):
        details = {}
        if isinstance(cause, ProxyException):
            details.update(cause.details)
        details.update(
            {
                "failedStep": STEP_FLAGS.get(failed_state, failed_state.value),
                "steps": dict(steps),
            }
        )
        details.update(extra or {})
        super().__init__(str(cause), details)
        self.cause = cause
        self.failed_state = failed_state
        self.steps = dict(steps)
        self.status_code = getattr(cause, "status_code", 500)


class SurveyPipeline:
    """
    Orchestrates one HubSpot -> survey API relay.
    """

    def __init__(
        self,
        hubspot_client,
        survey_client,
        mapping: Optional[Dict[str, FieldRule]] = None,
        writeback_enabled: bool = True,
        writeback_object_type: str = "contacts",
        writeback_fields: Optional[List[str]] = None,
        reconciliation_queue_url: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.hubspot = hubspot_client
        self.survey = survey_client
        self.mapping = mapping or DEFAULT_FIELD_MAPPING
        self.writeback_enabled = writeback_enabled
        self.writeback_object_type = writeback_object_type
        self.writeback_fields = list(writeback_fields or DEFAULT_WRITEBACK_FIELDS)
        self.reconciliation_queue_url = reconciliation_queue_url
        self.clock = clock
        self.id_factory = id_factory
        self.logger = logger

    @staticmethod
    def validate_ids(deal_id: Optional[str], contact_id: Optional[str]) -> None:
        """Reject a run before any fetch when an identifier is missing."""
        missing = [
            name for name, value in (("dealId", deal_id), ("contactId", contact_id))
            if not value
        ]
        if missing:
            raise ValidationException(
                "Missing required identifiers: " + ", ".join(missing),
                details={
                    "missing": missing,
                    "required": {"dealId": "string", "contactId": "string"},
                    "received": {"dealId": bool(deal_id), "contactId": bool(contact_id)},
                },
            )

    def compose(self, deal_id: str, contact_id: str) -> SurveyPayload:
        """Fetch both records and compose the payload without submitting."""
        self.validate_ids(deal_id, contact_id)
        deal = self.hubspot.get_deal_data(deal_id)
        contact = self.hubspot.get_contact_data(contact_id)
        return self._compose(deal, contact)

    def run(self, deal_id: str, contact_id: str) -> PipelineResult:
        """
        Execute the full pipeline.

        Raises:
            ValidationException: If an identifier is missing (nothing fetched)
            PipelineFailure: If any step fails
        """
        self.validate_ids(deal_id, contact_id)

        steps = {flag: STEP_PENDING for flag in STEP_FLAGS.values()}
        history = [PipelineState.RECEIVED]
        pending = PipelineState.DEAL_FETCHED

        def advance(state: PipelineState) -> None:
            steps[STEP_FLAGS[state]] = STEP_OK
            history.append(state)
            self.logger.info("Pipeline %s/%s: %s", deal_id, contact_id, state.value)

        try:
            deal = self.hubspot.get_deal_data(deal_id)
            advance(PipelineState.DEAL_FETCHED)

            pending = PipelineState.CONTACT_FETCHED
            contact = self.hubspot.get_contact_data(contact_id)
            advance(PipelineState.CONTACT_FETCHED)

            pending = PipelineState.PAYLOAD_COMPOSED
            payload = self._compose(deal, contact)
            advance(PipelineState.PAYLOAD_COMPOSED)

            pending = PipelineState.AUTHENTICATED
            token = self.survey.obtain_token()
            advance(PipelineState.AUTHENTICATED)

            pending = PipelineState.SUBMITTED
            result = self.survey.submit_survey(payload.to_dict(), token)
            advance(PipelineState.SUBMITTED)
        except Exception as e:
            raise self._fail(e, pending, steps) from e

        if self.writeback_enabled:
            self._write_back(deal_id, contact_id, payload, steps)
            advance(PipelineState.WRITTEN_BACK)
        else:
            steps[STEP_FLAGS[PipelineState.WRITTEN_BACK]] = STEP_SKIPPED

        history.append(PipelineState.DONE)
        return PipelineResult(
            deal_id=deal_id,
            contact_id=contact_id,
            payload=payload,
            result=result,
            steps=steps,
            history=history,
        )

    def _compose(self, deal: dict, contact: dict) -> SurveyPayload:
        return compose_payload(
            deal,
            contact,
            now=self.clock(),
            mapping=self.mapping,
            id_factory=self.id_factory,
        )

    def _writeback_record_id(self, deal_id: str, contact_id: str) -> str:
        return deal_id if self.writeback_object_type == "deals" else contact_id

    def _write_back(
        self, deal_id: str, contact_id: str, payload: SurveyPayload, steps: Dict[str, str]
    ) -> None:
        record_id = self._writeback_record_id(deal_id, contact_id)
        fields = payload.pick(self.writeback_fields)
        try:
            self.hubspot.write_back(record_id, self.writeback_object_type, fields)
        except Exception as e:
            # The survey is already submitted; keep the writeback for replay
            record = ReconciliationRecord(
                record_id=record_id,
                record_type=self.writeback_object_type,
                properties=fields,
                idnps=payload.idnps,
                error=str(e),
                deal_id=deal_id,
            )
            outcome = record_failed_writeback(record, self.reconciliation_queue_url)
            raise self._fail(
                e,
                PipelineState.WRITTEN_BACK,
                steps,
                extra={
                    "idnps": payload.idnps,
                    "reconciliation": outcome,
                    "reconciliationId": record.reconciliation_id,
                },
            ) from e

    def _fail(
        self,
        error: Exception,
        state: PipelineState,
        steps: Dict[str, str],
        extra: Optional[dict] = None,
    ) -> PipelineFailure:
        steps[STEP_FLAGS[state]] = STEP_FAILED
        self.logger.error(
            "Pipeline failed at %s (%s -> %s): %s",
            state.value,
            PipelineState.FAILED.value,
            steps,
            error,
        )
        return PipelineFailure(error, state, steps, extra)
