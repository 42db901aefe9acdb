# app/api/responses.py
from typing import Any, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from app.schemas.base_schema import ApiResponse, Meta


def ok(
    data: Any,
    message: str,
    request: Optional[Request] = None,
    meta: Optional[Meta] = None,
) -> ApiResponse:
    """Wrap a successful response in the standard ApiResponse envelope."""
    return ApiResponse(
        success=True,
        data=data,
        meta=meta,
        message=message,
        errors=None,
        trace_id=getattr(request.state, "trace_id", "") if request else "",
    )


def fail(request: Request, status_code: int, message: str, errors: Optional[list] = None) -> JSONResponse:
    """Wrap an error in the ApiResponse envelope."""
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(
            success=False,
            data=None,
            message=message,
            errors=errors if errors is not None else [message],
            trace_id=getattr(request.state, "trace_id", None) or "",
        ).model_dump(mode="json"),
    )
