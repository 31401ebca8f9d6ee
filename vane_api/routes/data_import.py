from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import PlainTextResponse

from vane_api.codec import decode_upload, read_csv_rows
from vane_api.context import AppContext, get_context
from vane_api.errors import CsvImportError

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_IMPORT_BYTES = 10_000_000


@router.post("/data/import", response_class=PlainTextResponse)
async def import_data(file: UploadFile = File(...), context: AppContext = Depends(get_context)):
    data = await file.read(MAX_IMPORT_BYTES + 1)
    if len(data) > MAX_IMPORT_BYTES:
        raise CsvImportError("CSV is too large", status_code=413)
    rows = read_csv_rows(decode_upload(data))
    count = await context.habits.import_csv(rows)
    logger.info("Parsed %s rows from %s", count, file.filename)
    return PlainTextResponse(f"Parsed {count} rows")
