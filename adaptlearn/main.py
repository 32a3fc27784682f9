import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from adaptlearn.api.routes_download import router as download_router
from adaptlearn.api.routes_exam import router as exam_router
from adaptlearn.api.routes_identify import router as identify_router
from adaptlearn.api.routes_upload import router as upload_router
from adaptlearn.core.config import LOG_LEVEL
from adaptlearn.core.errors import ApiError
from adaptlearn.middleware.limits import BodySizeLimitMiddleware

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger("api")

app = FastAPI(title="adaptlearn")

app.add_middleware(BodySizeLimitMiddleware)


@app.exception_handler(ApiError)
async def api_error(request: Request, exc: ApiError):
    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(body, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in e.get('loc', ())[1:]) or 'body'}: {e.get('msg')}" for e in exc.errors()
    )
    return JSONResponse({"error": f"Invalid request: {problems}"}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal Server Error"}, status_code=500)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(upload_router)
app.include_router(exam_router)
app.include_router(identify_router)
app.include_router(download_router)
