from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from .decode import DECODE_ERRORS, decode_data_uri, is_remote_url
from .gate import get_default_gate
from .models import AnalysisSubmissionMetadata, EvaluateRequest, QualityGateResult

log = logging.getLogger(__name__)

app = FastAPI(title="selfie-quality-gate", version="0.1.0")


def _request_source(request: EvaluateRequest):
    if request.imageBase64:
        try:
            return decode_data_uri(request.imageBase64)
        except DECODE_ERRORS:
            # Undecodable payloads are an image problem, not a client error.
            return b""
    if request.imageUrl:
        # Only remote captures; local paths stay a library-caller feature.
        if not is_remote_url(request.imageUrl):
            raise HTTPException(status_code=400, detail="unsupported_image_url")
        return request.imageUrl.strip()
    raise HTTPException(status_code=400, detail="missing_image_payload")


@app.get("/healthz")
def healthz() -> dict:
    gate = get_default_gate()
    return {
        "ok": True,
        "service": "selfie-quality-gate",
        "version": "0.1.0",
        "faceDetectionAvailable": gate.face_detection_enabled,
    }


@app.post("/evaluate", response_model=QualityGateResult)
def evaluate_photo(request: EvaluateRequest) -> QualityGateResult:
    source = _request_source(request)
    result = get_default_gate().evaluate(source, request.width, request.height)
    log.info(
        "evaluate ok=%s score=%d first_issue=%s",
        result.ok,
        result.score,
        result.issues[0].value if result.issues else "-",
    )
    return result


@app.post("/submission-metadata", response_model=AnalysisSubmissionMetadata)
def submission_metadata(request: EvaluateRequest) -> AnalysisSubmissionMetadata:
    source = _request_source(request)
    return get_default_gate().evaluate(source, request.width, request.height).submission_metadata()
