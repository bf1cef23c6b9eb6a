import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .cache import CacheManager
from .config import (
    ACCOUNT_STORE,
    DB_NAME,
    GUARDED_DEBIT,
    LOG_LEVEL,
    RATE_LIMIT_ENABLED,
    SEED_SAMPLE_ACCOUNTS,
)
from .db import MongoAccountStore, get_accounts_collection
from .errors import (
    BankingError,
    banking_error_handler,
    http_error_handler,
    rate_limit_error_handler,
    validation_error_handler,
)
from .limiter import limiter
from .publisher import EventPublisher
from .routes import accounts, transactions
from .seed import seed_sample_accounts
from .services.banking import BankingService
from .store import AccountStore, InMemoryAccountStore

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


def default_store() -> AccountStore:
    if ACCOUNT_STORE == "memory":
        return InMemoryAccountStore()

    return MongoAccountStore(get_accounts_collection())


@asynccontextmanager
async def lifespan(app: FastAPI):
    service = app.state.service
    await service.store.ensure_indexes()
    if app.state.seed:
        await seed_sample_accounts(service.store)

    logger.info("Transfer service started")
    logger.info("  - Store: %s (%s)", type(service.store).__name__, DB_NAME)
    logger.info("  - Redis cache: %s", "enabled" if service.cache.enabled else "disabled")
    logger.info("  - RabbitMQ: %s", service.publisher.host or "disabled")
    logger.info("  - Guarded debit: %s", "on" if service.guarded_debit else "off")

    yield

    await service.cache.close()


def create_app(
    store: AccountStore = None,
    cache: CacheManager = None,
    publisher: EventPublisher = None,
    guarded_debit: bool = GUARDED_DEBIT,
    seed: bool = SEED_SAMPLE_ACCOUNTS,
    rate_limit: bool = RATE_LIMIT_ENABLED,
) -> FastAPI:
    app = FastAPI(title="Bank Account Transfer System", version=__version__, lifespan=lifespan)
    app.state.seed = seed

    store = store if store is not None else default_store()
    app.state.service = BankingService(
        store,
        cache=cache or CacheManager(),
        publisher=publisher or EventPublisher(),
        guarded_debit=guarded_debit,
    )

    app.state.rate_limit_enabled = rate_limit
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
    app.add_exception_handler(BankingError, banking_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # -------------------- CORS --------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    @app.get("/")
    @limiter.exempt
    async def root():
        return {
            "message": "Bank Account Transfer System API",
            "version": __version__,
            "endpoints": {
                "accounts": "GET /accounts - List all accounts",
                "accountDetails": "GET /accounts/:accountNumber - Get account details",
                "createAccount": "POST /accounts - Create new account",
                "transfer": "POST /transfer - Transfer money between accounts",
                "deposit": "POST /deposit - Deposit money to account",
                "withdraw": "POST /withdraw - Withdraw money from account",
            },
        }

    app.include_router(accounts.router)
    app.include_router(transactions.router)

    return app


app = create_app()
