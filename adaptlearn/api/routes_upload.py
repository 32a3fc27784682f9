import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from adaptlearn.api.deps import get_orchestrator
from adaptlearn.services.analyze import AnalysisOrchestrator
from adaptlearn.services.extract import extract_text
from adaptlearn.utils.storage import scoped_upload

router = APIRouter(tags=["upload"])


@router.post("/upload")
async def upload(
    file: UploadFile = File(...),
    disability: str = Form(...),
    education_level: Optional[str] = Form(None, alias="educationLevel"),
    subject: Optional[str] = Form(None),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    async with scoped_upload(file) as path:
        size = os.path.getsize(path)
        text = await run_in_threadpool(extract_text, path, file.filename)

    report = await run_in_threadpool(orchestrator.analyze, text, disability)
    return {
        "success": True,
        "analysis": report.to_json(),
        "fileName": file.filename,
        "fileSize": size,
        "disability": disability,
        "educationLevel": education_level,
        "subject": subject,
    }
