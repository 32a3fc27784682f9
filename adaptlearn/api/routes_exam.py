from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from adaptlearn.api.deps import get_exam_adapter
from adaptlearn.core.errors import InvalidRequestError
from adaptlearn.services.exam import ExamAdapter
from adaptlearn.services.extract import extract_text
from adaptlearn.utils.storage import scoped_upload

router = APIRouter(tags=["exam"])


@router.post("/adapt-exam")
async def adapt_exam(
    disability: str = Form(...),
    file: Optional[UploadFile] = File(None),
    exam_text: Optional[str] = Form(None, alias="examText"),
    adapter: ExamAdapter = Depends(get_exam_adapter),
):
    if file is not None and file.filename:
        async with scoped_upload(file) as path:
            exam = await run_in_threadpool(extract_text, path, file.filename)
    elif exam_text and exam_text.strip():
        exam = exam_text
    else:
        raise InvalidRequestError("An exam file or examText is required")

    result = await run_in_threadpool(adapter.adapt, exam, disability)
    return {
        "success": True,
        "exam": result.to_json(),
        "fileName": file.filename if file is not None else None,
        "disability": disability,
    }
