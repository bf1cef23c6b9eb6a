import logging
from contextlib import contextmanager

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BankingError(Exception):
    """Base class for faults reported to the client as ``{error, message}``."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message, **self.extra}


class BadRequestError(BankingError):
    status_code = 400
    error = "Bad Request"


class AccountNotFoundError(BankingError):
    status_code = 404
    error = "Not Found"


class AccountConflictError(BankingError):
    status_code = 409
    error = "Conflict"


class AccountInactiveError(BankingError):
    status_code = 400
    error = "Account Inactive"


class InsufficientFundsError(BankingError):
    status_code = 400
    error = "Insufficient Funds"

    def __init__(self, account_number: str, available, requested):
        super().__init__(
            f"Insufficient balance in account {account_number}",
            availableBalance=available,
            requestedAmount=requested,
            shortfall=requested - available,
        )


class InternalServerError(BankingError):
    pass


class TransactionFailedError(BankingError):
    status_code = 500
    error = "Transaction Failed"


class DuplicateAccountError(Exception):
    """Raised by an account store when the account number is already taken."""

    def __init__(self, account_number: str):
        super().__init__(account_number)
        self.account_number = account_number


# -------------------- HANDLERS --------------------
async def banking_error_handler(request: Request, exc: BankingError):
    return JSONResponse(exc.to_dict(), exc.status_code)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and unsupported methods on known paths both look like a missing endpoint
    if exc.status_code in (404, 405):
        return JSONResponse(
            {"error": "Not Found", "message": "The requested endpoint does not exist"},
            404,
        )
    return JSONResponse({"error": "Error", "message": str(exc.detail)}, exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        {"error": "Bad Request", "message": "Request body must be a valid JSON object"},
        400,
    )


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded):
    response = JSONResponse(
        {"error": "Too Many Requests", "message": f"Rate limit exceeded: {exc.detail}"},
        429,
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


@contextmanager
def unexpected_errors(message: str, include_details: bool = False):
    """Turn any non-banking exception raised inside the block into a 500 with ``message``"""
    try:
        yield
    except BankingError:
        raise
    except Exception as e:
        logger.exception(message)
        extra = {"details": str(e)} if include_details else {}
        raise InternalServerError(message, **extra) from e
