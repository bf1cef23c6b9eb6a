from fastapi import Request

from .services.banking import BankingService


def get_service(request: Request) -> BankingService:
    return request.app.state.service
