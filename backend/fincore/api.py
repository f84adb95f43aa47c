"""FastAPI adapter exposing the decision engine to the UI layer.

Endpoints:
  POST /categorize      descriptions + user rules (+ categories) -> category ids
  POST /classify-price  price + past prices -> cheap / normal / expensive
  POST /price-history   past prices (+ current price) -> min / max / avg summary
  POST /installments    installment plan (+ cash price) -> present value comparison
  POST /clear-caches    drop memoized regexes / normalized descriptions
  GET  /health          simple health check

The adapter is stateless: rules, categories and history arrive with each
request and nothing is persisted.

Run (dev): uvicorn fincore.api:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from pydantic import BaseModel, Field

from .categorize import (
    DEFAULT_CATEGORIES,
    clear_caches,
    match_category_with_diagnostics,
)
from .installments import evaluate_installments
from .prices import classify_price, summarize_price_history


class RuleIn(BaseModel):
    pattern: str
    match_type: str = "includes"
    category_id: str
    priority: int = 0
    enabled: bool = True


class CategoryIn(BaseModel):
    id: str
    keywords: List[str] = Field(default_factory=list)
    priority: int = 0
    name: Optional[str] = None


class CategorizeRequest(BaseModel):
    descriptions: List[Optional[str]]
    rules: List[RuleIn] = Field(default_factory=list)
    categories: Optional[List[CategoryIn]] = None


class CategorizeResponse(BaseModel):
    categories: List[Optional[str]]
    metadata: List[dict]
    warnings: List[str]


class ClassifyPriceRequest(BaseModel):
    price: float
    history: List[float] = Field(default_factory=list)


class PriceHistoryRequest(BaseModel):
    current_price: Optional[float] = None
    history: List[float] = Field(default_factory=list)


class InstallmentsRequest(BaseModel):
    installment_amount: float = Field(..., ge=0)
    count: int = Field(..., ge=1)
    annual_inflation_percent: float = 0.0
    cash_price: Optional[float] = Field(None, ge=0)


logging.basicConfig(level=os.getenv("API_LOG_LEVEL", "INFO"))
logger = logging.getLogger("fincore_api")


def _cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]


app = FastAPI(title="Finance Decision Engine API", version="0.1.0")
app.add_middleware(GZipMiddleware, minimum_size=1024)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)


def _internal_error(what: str, exc: Exception) -> HTTPException:
    tb = traceback.format_exc()
    logger.error("%s failure: %s\n%s", what, exc, tb)
    return HTTPException(
        status_code=500, detail={"error": f"{what.upper()}_FAILURE", "message": str(exc)}
    )


@app.get("/")
def root():  # simple root for quick manual test
    return {"service": "fincore", "status": "ok"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/categorize", response_model=CategorizeResponse)
def categorize(req: CategorizeRequest):
    rules = [r.model_dump() for r in req.rules]
    categories: List[Any] = (
        list(DEFAULT_CATEGORIES)
        if req.categories is None
        else [c.model_dump() for c in req.categories]
    )
    try:
        results = [
            match_category_with_diagnostics(desc, rules, categories)
            for desc in req.descriptions
        ]
    except Exception as e:  # pragma: no cover - matcher does not raise
        raise _internal_error("categorize", e) from e
    warnings: List[str] = []
    for res in results:
        for w in res.warnings:
            if w not in warnings:
                warnings.append(w)
    return CategorizeResponse(
        categories=[r.category_id for r in results],
        metadata=[
            {"category_id": r.category_id, "source": r.source, "matched": r.matched}
            for r in results
        ],
        warnings=warnings,
    )


@app.post("/classify-price")
def classify_price_endpoint(req: ClassifyPriceRequest) -> Dict[str, Any]:
    result = classify_price(req.price, req.history)
    return {"classification": result.to_dict() if result is not None else None}


@app.post("/price-history")
def price_history(req: PriceHistoryRequest) -> Dict[str, Any]:
    summary = summarize_price_history(req.current_price, req.history)
    return {"summary": summary.to_dict() if summary is not None else None}


@app.post("/installments")
def installments(req: InstallmentsRequest) -> Dict[str, Any]:
    try:
        result = evaluate_installments(
            req.installment_amount,
            req.count,
            req.annual_inflation_percent,
            req.cash_price,
        )
    except Exception as e:  # pragma: no cover - evaluator does not raise
        raise _internal_error("installments", e) from e
    return result.to_dict()


@app.post("/clear-caches")
def clear_caches_endpoint():
    summary = clear_caches()
    logger.info("Cleared engine caches: %s", summary)
    return {"cleared": True, **summary}


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("fincore.api:app", host="0.0.0.0", port=8000, reload=True)
