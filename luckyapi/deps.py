from typing import Callable

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from luckyapi.containers import Container
from luckyapi.database.session import get_db

# Services
from luckyapi.services.group_service import GroupService
from luckyapi.services.order_service import OrderService
from luckyapi.services.wallet_service import WalletService


@inject
def get_wallet_service(
    db: Session = Depends(get_db),
    factory: Callable[..., WalletService] = Depends(Provider[Container.services.wallet_service]),
) -> WalletService:
    return factory(db=db)


@inject
def get_group_service(
    db: Session = Depends(get_db),
    factory: Callable[..., GroupService] = Depends(Provider[Container.services.group_service]),
) -> GroupService:
    return factory(db=db)


@inject
def get_order_service(
    db: Session = Depends(get_db),
    factory: Callable[..., OrderService] = Depends(Provider[Container.services.order_service]),
) -> OrderService:
    return factory(db=db)
