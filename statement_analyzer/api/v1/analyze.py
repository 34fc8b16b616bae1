"""POST /api/analyze-base64 and /api/analyze-pdf - statement analysis endpoints"""

import asyncio
import time
import logging
from typing import Awaitable, TypeVar
from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from statement_analyzer.api.v1.schemas import AnalysisResponse, AnalyzeBase64Request, ErrorResponse
from statement_analyzer.api.dependencies import get_analyzer, get_request_id, get_upload_store
from statement_analyzer.config import settings
from statement_analyzer.domain.analyzer import StatementAnalyzer
from statement_analyzer.domain.exceptions import IncompleteResultError, MalformedResponseError, UpstreamError
from statement_analyzer.domain.models import Document, PDF_MEDIA_TYPE
from statement_analyzer.infrastructure.storage.uploads import UploadStore, UploadTooLargeError
from statement_analyzer.infrastructure.observability.metrics import record_analysis
from statement_analyzer.infrastructure.observability.logging import log_analysis

router = APIRouter()

PROCESSING_ERROR = "Error procesando el archivo"
PDF_CONTENT_TYPES = {PDF_MEDIA_TYPE, "application/x-pdf"}
DISCONNECT_POLL_SECONDS = 1.0
CLIENT_CLOSED_REQUEST = 499

T = TypeVar("T")


class ClientDisconnected(Exception):
    """Client went away before the analysis finished"""

    pass


async def run_until_disconnected(request: Request, awaitable: Awaitable[T]) -> T:
    """Await the analysis, cancelling it if the client disconnects meanwhile"""
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(),
    )


async def run_analysis(
    request: Request,
    analyzer: StatementAnalyzer,
    document: Document,
    source: str,
) -> Response | AnalysisResponse:
    """
    Run the two-stage analysis and translate failures into error responses.

    Failures map to: UpstreamError -> 502, MalformedResponseError -> 502,
    IncompleteResultError -> 502, anything else -> 500.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    def finish(outcome: str, **fields) -> None:
        duration_ms = (time.time() - start_time) * 1000
        record_analysis(
            outcome,
            account_category=fields.get("account_category"),
            transaction_count=fields.get("transaction_count"),
        )
        log_analysis(request_id, source, outcome, duration_ms, **fields)

    try:
        result = await run_until_disconnected(request, analyzer.analyze(document))

    except ClientDisconnected:
        logging.warning("Client disconnected, analysis cancelled", extra={"request_id": request_id})
        finish("cancelled")
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    except UpstreamError as e:
        logging.error(f"Claude API error: {e}", extra={"request_id": request_id, "status_code": e.status_code})
        finish("upstream_error")
        return error_response(502, PROCESSING_ERROR, str(e))

    except MalformedResponseError as e:
        logging.error(f"Malformed Claude response: {e}", extra={"request_id": request_id, "raw_text": e.raw_text})
        finish("malformed_response")
        return error_response(502, PROCESSING_ERROR, str(e))

    except IncompleteResultError as e:
        logging.error(f"Incomplete analysis result: {e}", extra={"request_id": request_id})
        finish("incomplete_result")
        return error_response(502, PROCESSING_ERROR, str(e))

    except Exception as e:
        logging.exception(f"Unexpected error: {e}", extra={"request_id": request_id})
        finish("error")
        return error_response(500, PROCESSING_ERROR, str(e))

    finish(
        "success",
        account_category=result.account_category.value,
        institution_name=result.institution_name,
        transaction_count=len(result.transactions),
    )
    return AnalysisResponse.from_result(result)


@router.post(
    "/analyze-base64",
    response_model=AnalysisResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def analyze_base64(
    request_body: AnalyzeBase64Request,
    request: Request,
    analyzer: StatementAnalyzer = Depends(get_analyzer),
):
    """Analyze a statement PDF sent inline as base64"""
    if not request_body.base64_data:
        return error_response(400, "No se proporcionó base64Data")

    try:
        document = Document.from_base64(request_body.base64_data)
    except ValueError as e:
        return error_response(400, "base64Data inválido", str(e))

    if len(document.data) > settings.max_upload_bytes:
        return error_response(
            413,
            "El archivo excede el tamaño máximo permitido",
            f"Document exceeds {settings.max_upload_bytes} bytes",
        )

    logging.info("Processing statement from base64", extra={"request_id": get_request_id(request)})
    return await run_analysis(request, analyzer, document, source="base64")


@router.post(
    "/analyze-pdf",
    response_model=AnalysisResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def analyze_pdf(
    request: Request,
    pdf: UploadFile | None = File(None),
    analyzer: StatementAnalyzer = Depends(get_analyzer),
    upload_store: UploadStore = Depends(get_upload_store),
):
    """
    Analyze an uploaded statement PDF.

    The upload is written to the scratch directory, read back, and removed
    once the analysis finishes, whatever the outcome.
    """
    if pdf is None or not pdf.filename:
        return error_response(400, "No se proporcionó archivo PDF")

    is_pdf = pdf.content_type in PDF_CONTENT_TYPES or pdf.filename.lower().endswith(".pdf")
    if not is_pdf:
        return error_response(415, "El archivo debe ser un PDF", f"Received {pdf.content_type}")

    logging.info(
        f"Processing uploaded statement: {pdf.filename}",
        extra={"request_id": get_request_id(request)},
    )

    try:
        async with upload_store.stored(pdf) as path:
            data = path.read_bytes()
            if not data:
                return error_response(400, "El archivo PDF está vacío")
            return await run_analysis(request, analyzer, Document(data=data), source="upload")
    except UploadTooLargeError as e:
        return error_response(413, "El archivo excede el tamaño máximo permitido", str(e))
