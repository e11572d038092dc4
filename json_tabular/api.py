"""HTTP API for JSON to SQL/CSV conversion."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Query
from pydantic import BaseModel

from .config import Settings
from .converter import ConversionResult, FreeTierGate, OutputFormat, convert
from .flattener import InvalidJSONError
from .pending import PendingConversionStore

logger = logging.getLogger(__name__)


class ConversionRequest(BaseModel):
    jsonInput: str
    outputFormat: OutputFormat
    tableName: Optional[str] = None
    sessionId: Optional[str] = None


class ConversionResponse(BaseModel):
    output: str
    lineCount: int
    nestingLevel: int
    recordCount: int
    requiresPayment: bool


class PendingRequest(BaseModel):
    jsonInput: str
    outputFormat: OutputFormat
    tableName: Optional[str] = None


class PendingResponse(BaseModel):
    sessionId: str


class PaidResponse(BaseModel):
    paid: bool


def _to_response(result: ConversionResult) -> ConversionResponse:
    return ConversionResponse(
        output=result.output,
        lineCount=result.line_count,
        nestingLevel=result.nesting_level,
        recordCount=result.record_count,
        requiresPayment=result.requires_payment,
    )


def _invalid_json(exc: InvalidJSONError) -> HTTPException:
    return HTTPException(status_code=400, detail={"message": "Invalid JSON format", "error": str(exc)})


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[PendingConversionStore] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Runtime settings (defaults to :class:`Settings`).
        store: Pending conversion store (a fresh in-memory one by default).
    """
    settings = settings or Settings()
    if store is None:
        store = PendingConversionStore(ttl_seconds=settings.pending_ttl_seconds)
    gate = FreeTierGate(max_lines=settings.free_line_limit, max_records=settings.free_record_limit)

    app = FastAPI(title="JSON Tabular Converter")
    app.state.settings = settings
    app.state.store = store

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/api/convert", response_model=ConversionResponse)
    def convert_json(
        payload: ConversionRequest,
        session_id: Optional[str] = Query(None),
        x_session_id: Optional[str] = Header(None),
    ):
        paid = store.is_paid(session_id or payload.sessionId or x_session_id)
        try:
            result = convert(
                payload.jsonInput,
                payload.outputFormat,
                table_name=payload.tableName or settings.table_name,
                gate=gate,
                paid=paid,
            )
        except InvalidJSONError as exc:
            logger.info("Rejected invalid JSON input: %s", exc)
            raise _invalid_json(exc) from exc
        return _to_response(result)

    @app.post("/api/pending", response_model=PendingResponse, status_code=201)
    def save_pending(payload: PendingRequest):
        entry = store.save(
            payload.jsonInput,
            payload.outputFormat,
            payload.tableName or settings.table_name,
        )
        logger.info("Saved pending conversion %s", entry.session_id)
        return PendingResponse(sessionId=entry.session_id)

    @app.post("/api/pending/{session_id}/paid", response_model=PaidResponse)
    def mark_paid(session_id: str):
        if not store.mark_paid(session_id):
            raise HTTPException(status_code=404, detail="Pending conversion not found. Session may have expired.")
        logger.info("Session %s marked as paid", session_id)
        return PaidResponse(paid=True)

    @app.get("/api/success", response_model=ConversionResponse)
    def complete_pending(pending_session: Optional[str] = Query(None)):
        if not pending_session:
            raise HTTPException(status_code=400, detail="Missing pending_session parameter")

        entry = store.get(pending_session)
        if entry is None:
            raise HTTPException(status_code=404, detail="Pending conversion not found. Session may have expired.")
        if not store.is_paid(pending_session):
            raise HTTPException(status_code=402, detail="Payment required for this conversion.")

        try:
            result = convert(entry.json_input, entry.output_format, table_name=entry.table_name)
        except InvalidJSONError as exc:
            raise _invalid_json(exc) from exc

        store.delete(pending_session)
        return _to_response(result)

    return app
