import base64
import os
import re
from pathlib import Path

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from statement_analyzer.domain.prompts import DETECTION_PROMPT

app = FastAPI(title="Mock Claude Messages API", version="1.0.0")
# Support both local development and Docker
STUB_DIR = Path("/claude_stub") if os.path.exists("/claude_stub") else Path(__file__).resolve().parents[1] / "claude_stub"

# Fake statements carry their persona in the payload, e.g. b"%PDF-1.4 persona=debit_banorte"
PERSONA_PATTERN = re.compile(rb"persona=([a-z_]+)")
OVERLOADED_PERSONA = "overloaded"


def anthropic_error(status_code: int, error_type: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"type": "error", "error": {"type": error_type, "message": message}},
    )


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/v1/messages")
async def create_message(request: Request, x_api_key: str | None = Header(None)):
    if not x_api_key:
        return anthropic_error(401, "authentication_error", "x-api-key header is required")

    body = await request.json()
    try:
        content = body["messages"][0]["content"]
        document = next(block for block in content if block["type"] == "document")
        prompt = next(block for block in content if block["type"] == "text")["text"]
    except (KeyError, IndexError, StopIteration):
        return anthropic_error(400, "invalid_request_error", "expected a document block and a text block")

    match = PERSONA_PATTERN.search(base64.b64decode(document["source"]["data"]))
    if not match:
        return anthropic_error(400, "invalid_request_error", "could not read document")

    persona = match.group(1).decode()
    if persona == OVERLOADED_PERSONA:
        return anthropic_error(529, "overloaded_error", "Overloaded")

    stage = "detection" if prompt == DETECTION_PROMPT else "extraction"
    file = STUB_DIR / persona / f"{stage}.txt"
    if not file.exists():
        raise HTTPException(status_code=404, detail="persona not found")

    return {
        "id": f"msg_mock_{persona}_{stage}",
        "type": "message",
        "role": "assistant",
        "model": body.get("model"),
        "content": [{"type": "text", "text": file.read_text(encoding="utf-8")}],
        "stop_reason": "end_turn",
        "usage": {"input_tokens": 0, "output_tokens": 0},
    }
