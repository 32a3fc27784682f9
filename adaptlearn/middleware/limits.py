from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from adaptlearn.core.config import MAX_UPLOAD_BYTES


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    # exceptions raised here bypass FastAPI's handlers, so respond directly
    async def dispatch(self, request: Request, call_next):
        cl = request.headers.get("content-length")
        if cl is not None:
            try:
                size = int(cl)
            except ValueError:
                return JSONResponse({"error": "Bad Content-Length"}, status_code=400)
            if size > MAX_UPLOAD_BYTES:
                return JSONResponse({"error": "File too large"}, status_code=413)
        return await call_next(request)
