"""
mailtext/api/app.py
-------------------
FastAPI service endpoint for the message parser.
Accepts an uploaded .eml file and returns its plain-text body and headers.
"""

from fastapi import FastAPI, UploadFile, File, Form
from fastapi.responses import JSONResponse


# Logging
from mailtext.utils.config import CONFIG
from mailtext.utils.logging_utils import configure_logging, get_logger

# Parser
from mailtext.email_parser.errors import MessageError
from mailtext.email_parser.parser import parse_email
from mailtext.processing.pipeline import email_to_dict, process_message, screen_email


# -------------------------------------------------------------------
# Initialize logging BEFORE creating the FastAPI app
# -------------------------------------------------------------------
configure_logging(debug=CONFIG.DEBUG)
logger = get_logger()


# -------------------------------------------------------------------
# Create FastAPI Application
# -------------------------------------------------------------------
app = FastAPI(
    title="mailtext",
    description="Best-effort plain text and header extraction from raw RFC 822 / MIME email.",
    version="1.0.0",
)


def _error_response(e: MessageError) -> JSONResponse:
    return JSONResponse(
        content={"error": type(e).__name__, "detail": str(e)},
        status_code=422,
    )


# -------------------------------------------------------------------
# ROUTES
# -------------------------------------------------------------------

@app.post("/parse-email")
async def parse_email_upload(file: UploadFile = File(...)):
    """
    Upload a .eml file and return its plain-text body and decoded headers.
    """
    raw_bytes = await file.read()
    logger.info(f"Received file: name={file.filename}, size={len(raw_bytes)} bytes")

    try:
        body, headers = parse_email(raw_bytes)
    except MessageError as e:
        logger.warning(f"Could not parse {file.filename}: {type(e).__name__}: {e}")
        return _error_response(e)

    logger.info(
        "Parsed email | from={from_} subject={subject!r} chars={chars}",
        from_=headers.get_first("From"),
        subject=headers.get_first("Subject"),
        chars=len(body),
    )
    return JSONResponse(content={"body": body, "headers": headers.to_dict()}, status_code=200)


@app.post("/process-email")
async def process_email_upload(
    file: UploadFile = File(...),
    message_id: str = Form(""),
    thread_id: str = Form(""),
):
    """
    Upload a .eml file and return the assembled Email record plus the
    screening verdict (junk_reason is null for messages worth keeping).
    """
    raw_bytes = await file.read()
    logger.info(f"Received file: name={file.filename}, size={len(raw_bytes)} bytes")

    try:
        email = process_message(raw_bytes, message_id=message_id, thread_id=thread_id)
    except MessageError as e:
        logger.warning(f"Could not process {file.filename}: {type(e).__name__}: {e}")
        return _error_response(e)

    reason = screen_email(email)
    logger.info(
        "Processed email | from={from_} subject={subject!r} junk={junk}",
        from_=email.sender,
        subject=email.subject,
        junk=reason,
    )
    return JSONResponse(content={**email_to_dict(email), "junk_reason": reason}, status_code=200)


@app.get("/")
def home():
    logger.info("Health check called on /")
    return {
        "status": "running",
        "message": "mailtext message parser",
        "endpoints": {
            "POST /parse-email": "Upload .eml file to extract body and headers",
            "POST /process-email": "Upload .eml file to build and screen an Email record",
        },
    }
