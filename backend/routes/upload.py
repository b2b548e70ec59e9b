"""
Upload routes - load one class sheet or a batch of sheets of the same level/stream.
"""

import logging
import os
import uuid
from time import time
from typing import List

from fastapi import APIRouter, File, HTTPException, UploadFile

from core.aggregator import BatchAggregator
from core.analysis import AnalysisCache, detect_optional_subjects
from core.errors import IngestionError
from core.models import IngestionResult
from core.parser import decode_grid, ingest_grid
from core.stats import sanitize

logger = logging.getLogger(__name__)

router = APIRouter()

# In-memory session store: session_id → { dataset, cache, optional_subjects, ... }
sessions: dict = {}
SESSION_TTL_SECONDS = 60 * 60  # 1 hour


def _pass_mark() -> float:
    return float(os.getenv("PASS_MARK", "10"))


def _ingest_options() -> dict:
    return {"trailing_row_policy": os.getenv("TRAILING_ROW_POLICY", "auto").strip().lower()}


def _max_files() -> int:
    return int(os.getenv("MAX_UPLOAD_FILES", "20"))


def _purge_expired_sessions():
    now = time()
    expired = [
        sid for sid, s in sessions.items()
        if (now - float(s.get("created_at", now))) > SESSION_TTL_SECONDS
    ]
    for sid in expired:
        sessions.pop(sid, None)


def get_session(session_id: str) -> dict:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(404, "Session not found. Please re-upload the file.")
    return session


def _store(dataset: IngestionResult, filenames: List[str]) -> dict:
    """Every stored dataset gets its own cache, so views never outlive their data."""
    _purge_expired_sessions()
    session_id = str(uuid.uuid4())
    optional_subjects = tuple(detect_optional_subjects(dataset.subjects))
    sessions[session_id] = {
        "dataset": dataset,
        "cache": AnalysisCache(pass_mark=_pass_mark()),
        "optional_subjects": optional_subjects,
        "filenames": filenames,
        "created_at": time(),
    }
    return {
        "session_id": session_id,
        "filenames": filenames,
        "student_count": len(dataset.students),
        "students": sanitize(list(dataset.students)),
        "subjects": list(dataset.subjects),
        "optional_subjects": list(optional_subjects),
        "metadata": sanitize(dataset.metadata),
        "header_row_index": dataset.header_row_index,
        "dropped_row": sanitize(dataset.dropped_row),
    }


@router.post("/file")
async def upload_file(file: UploadFile = File(...)):
    """Analyse one class sheet (.xlsx, .xls, .ods or .csv)."""
    payload = await file.read()
    try:
        dataset = ingest_grid(decode_grid(payload, file.filename), **_ingest_options())
    except IngestionError as e:
        raise HTTPException(400, f"Failed to process upload '{file.filename}': {e}")
    return _store(dataset, [file.filename])


@router.post("/files")
async def upload_files(files: List[UploadFile] = File(...)):
    """
    Merge several class sheets of the same level and stream.
    Files are read and validated one by one; the first failure rejects the batch.
    """
    if not files:
        raise HTTPException(400, "No files provided.")
    if len(files) > _max_files():
        raise HTTPException(400, f"Too many files: at most {_max_files()} per batch.")

    batch = BatchAggregator(**_ingest_options())
    try:
        for upload in files:
            payload = await upload.read()
            batch.add(upload.filename, decode_grid(payload, upload.filename))
        dataset = batch.result()
    except IngestionError as e:
        logger.warning("Batch upload rejected: %s", e)
        raise HTTPException(400, str(e))
    return _store(dataset, [f.filename for f in files])


@router.delete("/session/{session_id}")
async def drop_session(session_id: str):
    get_session(session_id)
    sessions.pop(session_id, None)
    return {"dropped": session_id}
