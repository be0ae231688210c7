import os

from fastapi import FastAPI, HTTPException, UploadFile

from .errors import MalformedDateError
from .logger import setup_logger
from .vcards import parse_vcards, record_to_json

logger = setup_logger(os.environ.get("VCARDIO_LOG_LEVEL", "INFO"))

app = FastAPI()

@app.get("/health")
async def health():
    return {"status": "ok"}

@app.post("/upload")
async def upload(file: UploadFile):
    data = await file.read()
    try:
        records = parse_vcards(data)
    except MalformedDateError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    logger.info("Decoded %d vCard(s) from %s", len(records), file.filename or "upload")
    return [record_to_json(r) for r in records]
