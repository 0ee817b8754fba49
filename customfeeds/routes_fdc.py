from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .errors import message_error
from .fdc import InternalError, VerifierClient, VerifierError
from .middleware import get_request_id


logger = logging.getLogger("customfeeds.fdc.routes")

router = APIRouter(prefix="/api/fdc", tags=["fdc"])


class VerifierConfigResponse(BaseModel):
    base_urls: Dict[str, str]
    source_chain_ids: List[int]
    timeout: Optional[float] = None


def get_verifier_client(request: Request) -> VerifierClient:
    return request.app.state.verifier_client


async def _read_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise InternalError(f"Invalid JSON body: {exc}") from exc
    if not isinstance(body, dict):
        raise InternalError("Request body must be a JSON object")
    return body


@router.get("/verifier/config", response_model=VerifierConfigResponse)
def read_verifier_config(client: VerifierClient = Depends(get_verifier_client)) -> VerifierConfigResponse:
    return VerifierConfigResponse(**client.describe_config())


@router.post("/prepare-request")
async def prepare_request(
    request: Request,
    client: VerifierClient = Depends(get_verifier_client),
) -> Any:
    try:
        body = await _read_body(request)
        data = await client.prepare_request(body)
    except VerifierError as exc:
        if isinstance(exc, InternalError):
            logger.exception("FDC prepare request error request_id=%s: %s", get_request_id(request), exc.detail)
        else:
            logger.warning(
                "FDC prepare request rejected status=%s request_id=%s: %s",
                exc.status_code,
                get_request_id(request),
                exc.detail,
            )
        return message_error(exc.detail, status_code=exc.status_code)
    except Exception as exc:
        logger.exception("FDC prepare request error request_id=%s", get_request_id(request))
        return message_error(str(exc) or "Unknown error", status_code=500)

    return JSONResponse(status_code=200, content=data)
