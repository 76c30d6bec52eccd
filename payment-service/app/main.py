import logging
import uvicorn
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import Settings
from app.errors import PaymentError
from app.gateway import CashfreeClient
from app.payments import create_payment, verify_payment
from app.schemas import (
    ErrorResponse,
    PaymentCreateRequest,
    PaymentCreateResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from app.store import RecordStore, create_record_store

logger = logging.getLogger("payment_service")

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_gateway(request: Request) -> CashfreeClient:
    return request.app.state.gateway

def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Payment Service")
    app.state.settings = settings
    app.state.gateway = None
    app.state.store = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        app.state.gateway = CashfreeClient(settings)
        app.state.store = await create_record_store(settings)
        logger.info("Payment service ready (Cashfree %s)", settings.cashfree_env)

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.gateway is not None:
            await app.state.gateway.aclose()
        if app.state.store is not None:
            await app.state.store.close()

    @app.exception_handler(PaymentError)
    async def payment_error_handler(request: Request, exc: PaymentError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.errors())
        return error_response(400, "Invalid request body")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error")

    @app.post("/api/payment/create", response_model=PaymentCreateResponse, responses=ERROR_RESPONSES)
    async def create_payment_order(
        body: PaymentCreateRequest,
        gateway: CashfreeClient = Depends(get_gateway),
        store: RecordStore = Depends(get_store),
        settings: Settings = Depends(get_settings),
    ):
        return await create_payment(body, gateway, store, settings)

    @app.post("/api/payment/verify", response_model=PaymentVerifyResponse, responses=ERROR_RESPONSES)
    async def verify_payment_order(
        body: PaymentVerifyRequest,
        gateway: CashfreeClient = Depends(get_gateway),
        store: RecordStore = Depends(get_store),
    ):
        return await verify_payment(body, gateway, store)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
