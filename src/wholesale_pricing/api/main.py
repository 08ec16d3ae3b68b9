"""
Wholesale API - thin HTTP adapters over the wholesale service.

Endpoints: cart pricing preview, catalog with pricing, product detail,
order history and order placement. Errors are returned as ``{"error": ...}``.
"""
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Header, Query, Request as HttpRequest
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config.settings import get_settings
from ..errors import WholesaleError
from ..services.wholesale_service import WholesaleService
from ..utils.logger import setup_logging
from .schemas import OrderRequestModel, PricingRequestModel
from .state import get_service

logger = logging.getLogger(__name__)


def create_app(service: Optional[WholesaleService] = None) -> FastAPI:
    """Build the FastAPI app around ``service`` (the process-wide one by default)."""
    settings = get_settings()
    setup_logging(settings.log_level)
    service = service or get_service()

    app = FastAPI(
        title="Wholesale Pricing API",
        description="Vendor cart pricing and wholesale order placement",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(WholesaleError)
    async def wholesale_error_handler(request: HttpRequest, exc: WholesaleError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.client_message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: HttpRequest, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request payload"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: HttpRequest, exc: Exception):
        logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Unexpected error"})

    @app.get("/")
    async def root():
        return {"status": "online", "message": "Wholesale Pricing API Active"}

    @app.post("/wholesale/cart")
    async def price_cart(req: PricingRequestModel, authorization: Optional[str] = Header(None)):
        quote = await service.quote(req.to_request(authorization))
        return quote.to_dict()

    @app.get("/wholesale/catalog")
    async def get_catalog(
        vendor_id: Optional[str] = Query(None, alias="vendorId"),
        vendor_email: Optional[str] = Query(None, alias="vendorEmail"),
        pricing_tier: Optional[str] = Query(None, alias="pricingTier"),
        category_id: Optional[str] = Query(None, alias="categoryId"),
        authorization: Optional[str] = Header(None),
    ):
        return await service.list_catalog(
            vendor_id=vendor_id,
            vendor_email=vendor_email,
            authorization=authorization,
            pricing_tier=pricing_tier,
            category_id=category_id,
        )

    @app.get("/wholesale/products/{slug}")
    async def get_product(
        slug: str,
        vendor_id: Optional[str] = Query(None, alias="vendorId"),
        vendor_email: Optional[str] = Query(None, alias="vendorEmail"),
        pricing_tier: Optional[str] = Query(None, alias="pricingTier"),
        authorization: Optional[str] = Header(None),
    ):
        return await service.get_product(
            slug,
            vendor_id=vendor_id,
            vendor_email=vendor_email,
            authorization=authorization,
            pricing_tier=pricing_tier,
        )

    @app.get("/wholesale/orders")
    async def get_orders(
        vendor_id: Optional[str] = Query(None, alias="vendorId"),
        vendor_email: Optional[str] = Query(None, alias="vendorEmail"),
        authorization: Optional[str] = Header(None),
    ):
        return await service.order_history(
            vendor_id=vendor_id,
            vendor_email=vendor_email,
            authorization=authorization,
        )

    @app.post("/wholesale/orders")
    async def place_order(req: OrderRequestModel, authorization: Optional[str] = Header(None)):
        quote, order = await service.place_order(req.to_request(authorization))
        response = quote.to_dict()
        response["order"] = order.summary()
        return response

    return app


def serve() -> None:
    """Run the API under uvicorn with host, port and reload taken from settings."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("Starting Wholesale Pricing API on %s:%d", settings.api_host, settings.api_port)
    uvicorn.run(
        "wholesale_pricing.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )


app = create_app()

if __name__ == "__main__":
    serve()
