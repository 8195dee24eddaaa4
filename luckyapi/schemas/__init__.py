from .wallet import WalletBalanceResponse, WalletTransactionEntry
from .order import CheckoutRequest, CheckoutResponse, OrderView
from .group import GroupJoinResult, GroupView
from .pagination import PaginatedResponse
