from dependency_injector import containers, providers

from luckyapi.config import Settings
from luckyapi.services.group_service import GroupService
from luckyapi.services.order_service import OrderService
from luckyapi.services.wallet_service import WalletService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies.

    세션은 요청마다 get_db 로 열리므로 팩토리 호출 시 db 를 넘긴다.
    """

    config = providers.DependenciesContainer()

    wallet_service = providers.Factory(WalletService, app_settings=config.config)
    group_service = providers.Factory(GroupService, app_settings=config.config)
    order_service = providers.Factory(OrderService, app_settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=["luckyapi.deps"],
    )

    config = providers.Container(ConfigModule)
    services = providers.Container(ServiceModule, config=config)
