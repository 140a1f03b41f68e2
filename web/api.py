"""
Safe Browse Web API
FastAPI backend for the Safe Browsing lookup client
"""

from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from safe_browse import (
    APIResponseError,
    ConfigurationError,
    InvalidURLError,
    NoValidURLError,
    SafeBrowseClient,
    TooManyURLsError,
    TransportError,
)
from safe_browse.models import LookupResult

app = FastAPI(
    title="Safe Browse",
    description="Malware/phishing URL lookup",
    version="1.0.0",
)

_client: Optional[SafeBrowseClient] = None


def get_client() -> SafeBrowseClient:
    """Shared client built from SAFE_BROWSE_* environment variables."""
    global _client
    if _client is None:
        try:
            _client = SafeBrowseClient.from_env()
        except ConfigurationError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
    return _client


class LookupBody(BaseModel):
    url: str


class BatchRequest(BaseModel):
    urls: list[str]


def _summary(result: LookupResult, submitted: list[str]) -> dict:
    return {
        "total": len(result.data),
        "flagged": len(result.flagged()),
        "skipped": result.missing(submitted),
    }


async def _lookup(client: SafeBrowseClient, target) -> LookupResult:
    try:
        return await client.lookup_async(target)
    except (InvalidURLError, TooManyURLsError, NoValidURLError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (APIResponseError, TransportError) as e:
        raise HTTPException(status_code=502, detail=str(e)) from e


@app.get("/api/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/api/lookup")
async def lookup_url(request: LookupBody, client: SafeBrowseClient = Depends(get_client)):
    """Look up a single URL"""
    result = await _lookup(client, request.url)
    return result.to_dict()


@app.post("/api/batch")
async def lookup_batch(request: BatchRequest, client: SafeBrowseClient = Depends(get_client)):
    """Look up up to 500 URLs in one request"""
    result = await _lookup(client, request.urls)
    return {"summary": _summary(result, request.urls), **result.to_dict()}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
