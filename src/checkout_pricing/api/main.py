"""
Checkout Pricing API - prices carts over HTTP.

The engine does no I/O; this module only translates JSON to Cart and
RuleTable shapes and maps engine errors to HTTP responses.
"""
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..engine import PricingEngine, UnknownSku, InvalidRule
from ..config.settings import get_settings, load_configured_rules
from ..config.log_setup import setup_logging
from ..rules.rule_loader import rule_table_from_dict, rule_table_to_dict

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    yield


app = FastAPI(
    title="Checkout Pricing API",
    description="Prices scanned carts against unit prices and promotions",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class CalcRequest(BaseModel):
    # "AABC" or ["A", "A", "B", "C"]
    cart: Union[str, List[str]]
    # Optional rule table for this call only; the configured table otherwise
    rules: Optional[Dict[str, Dict[str, Any]]] = None


@lru_cache(maxsize=1)
def get_engine() -> PricingEngine:
    """Engine bound to the configured rule table."""
    return PricingEngine(load_configured_rules(get_settings()))


@app.exception_handler(UnknownSku)
async def unknown_sku_handler(request: Request, exc: UnknownSku):
    return JSONResponse(status_code=422, content={"detail": str(exc), "sku": exc.sku})


@app.exception_handler(InvalidRule)
async def invalid_rule_handler(request: Request, exc: InvalidRule):
    return JSONResponse(status_code=422, content={"detail": str(exc), "sku": exc.sku})


@app.get("/")
async def root():
    return {"status": "online", "message": "Checkout Pricing API Active"}


@app.get("/rules")
async def get_rules(engine: PricingEngine = Depends(get_engine)):
    return rule_table_to_dict(engine.rules)


@app.post("/calculate")
async def calculate(req: CalcRequest, engine: PricingEngine = Depends(get_engine)):
    if req.rules is not None:
        engine = PricingEngine(rule_table_from_dict(req.rules))
    receipt = engine.calculate(req.cart)
    logger.info("Priced cart of %d item(s): %d", receipt.item_count, receipt.total, extra={"total": receipt.total})
    return receipt.to_dict()
