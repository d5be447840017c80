"""Archive import route: POST /api/import/{platform}."""

import dataclasses
import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from social_analytics.analyses import save_analysis
from social_analytics.config import settings
from social_analytics.database import get_session
from social_analytics.ingest import ArchiveTooLargeError, ImportDiagnostics, IngestError, import_archive
from social_analytics.models import User
from social_analytics.report import data_to_dict
from social_analytics.routes.auth_routes import optional_user

# Chunk size for streaming reads (1 MiB)
_CHUNK_SIZE = 1024 * 1024

logger = logging.getLogger(__name__)

router = APIRouter()


def diagnostics_json(diagnostics: ImportDiagnostics) -> dict[str, Any]:
    payload = dataclasses.asdict(diagnostics)
    payload["files_recognized"] = diagnostics.files_recognized
    return payload


def _read_limited(file: UploadFile) -> bytes:
    """Read the upload in chunks, aborting once it exceeds the size limit."""
    chunks = []
    total = 0
    while True:
        chunk = file.file.read(_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            logger.warning(
                "Upload '%s' rejected: exceeds %d MB limit",
                file.filename,
                settings.max_upload_size_mb,
            )
            raise HTTPException(
                status_code=413,
                detail=f"File exceeds the {settings.max_upload_size_mb} MB size limit.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/api/import/{platform}")
async def import_upload(
    platform: str,
    file: UploadFile = File(...),
    save_as: str | None = Form(None),
    user: User | None = Depends(optional_user),
    db: Session = Depends(get_session),
) -> dict[str, Any]:
    """Import an exported ZIP archive and return the aggregate with diagnostics.

    When ``save_as`` is given and the request is signed in, the aggregate is
    also stored as a saved analysis. A failed save does not fail the import.
    """
    payload = _read_limited(file)

    try:
        result = import_archive(payload, platform)
    except ArchiveTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc))
    except IngestError as exc:
        logger.warning("Import error for '%s': %s", file.filename, exc)
        raise HTTPException(status_code=400, detail=str(exc))

    platform_value = result.diagnostics.platform
    saved_analysis_id = None
    if save_as is not None:
        if user is None:
            result.diagnostics.warnings.append("Not signed in; the import was not saved.")
        else:
            try:
                saved_analysis_id = save_analysis(db, user, platform_value, save_as, result.data).id
            except SQLAlchemyError:
                logger.exception("Saving imported %s analysis failed", platform_value)
                db.rollback()
                result.diagnostics.warnings.append("The import could not be saved.")

    return {
        "platform": platform_value,
        "data": data_to_dict(platform_value, result.data),
        "diagnostics": diagnostics_json(result.diagnostics),
        "saved_analysis_id": saved_analysis_id,
    }
