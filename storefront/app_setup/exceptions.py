"""
Gestionnaires d'exceptions.
- Toute HTTPException (FastAPI/Starlette, y compris 404/405/429) devient {"error": ..., "details"?: ...}.
- Les en-têtes de l'exception sont conservés (ex: Allow sur 405).
- Les corps invalides sont traités dans les vues elles-mêmes (lecture manuelle de Request).
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def json_error(request: Request, exc: StarletteHTTPException):
        content = {"error": exc.detail if isinstance(exc.detail, str) else "Request failed"}
        if not isinstance(exc.detail, str) and exc.detail is not None:
            content["details"] = exc.detail
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))
