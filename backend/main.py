"""
FastAPI backend service for statement parsing.
"""
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import re

from statement_parser import DateFormat, ExtractionError, extract_text, parse_statement

app = FastAPI(title="Statement Parser", version="1.0.0")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],  # Vite and other dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_MIME_TYPES = {"application/pdf"}
ALLOWED_EXTENSIONS = {".pdf"}


def sanitize_filename(filename: str) -> str:
    """Strip path components and unsafe characters from an uploaded filename."""
    basename = re.split(r"[/\\]", filename or "")[-1] or "upload"
    return re.sub(r"[^a-zA-Z0-9._-]", "_", basename)[:255]


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Statement Parser API", "status": "healthy"}


@app.post("/parse")
def parse_upload(file: UploadFile = File(...), date_format: DateFormat = DateFormat.DD_MM_YYYY):
    """
    Parse an uploaded statement PDF and return structured data.

    Args:
        file: Uploaded PDF file
        date_format: Date format used by the statement

    Returns:
        Parsed statement data as JSON
    """
    filename = sanitize_filename(file.filename)
    if not filename.lower().endswith(tuple(ALLOWED_EXTENSIONS)):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    if file.content_type and file.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Only PDF files are allowed. Received: {file.content_type}"
        )

    content = file.file.read(MAX_FILE_SIZE + 1)
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File size exceeds maximum allowed size of {MAX_FILE_SIZE // (1024 * 1024)}MB"
        )

    logger.info(f"Processing PDF: {filename}")

    try:
        text = extract_text(content)
    except ExtractionError as e:
        logger.error(f"Error extracting PDF {filename}: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    result = parse_statement(text, date_format)
    data = result.model_dump(mode="json")

    logger.info(f"Successfully parsed PDF: {len(data['transactions'])} transactions found")

    return JSONResponse(content={
        "success": True,
        "data": data,
        "summary": {
            "transactions_count": len(result.transactions),
            "card_number_last4": result.card_number_last4,
            "total_debit": str(sum(t.debit for t in result.transactions if t.debit is not None)),
            "total_credit": str(sum(t.credit for t in result.transactions if t.credit is not None)),
        }
    })


@app.get("/date-formats")
async def list_date_formats():
    """List the supported statement date formats."""
    return JSONResponse(content={
        "success": True,
        "date_formats": [fmt.value for fmt in DateFormat]
    })


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
