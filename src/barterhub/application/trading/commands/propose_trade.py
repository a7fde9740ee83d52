"""Propose trade command"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

from ....mediator import Request, RequestHandler
from ....domain.shared.exceptions import (
    ProductNotFoundError,
    ProductUnavailableError,
    ValidationError,
)
from ....domain.trading.trade import Trade, TradeOption
from ....ports.repositories import ITradeRepository
from ....ports.outbound.catalog import IProductCatalog
from ....ports.outbound.notifier import INotifier
from ._trade_action import require_positive_id, check_offered_products, notify_parties

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProposeTradeCommand(Request[Trade]):
    """Command for a buyer to propose a trade against a listed product"""
    caller_id: int
    target_product_id: int
    offered_product_ids: Tuple[int, ...] = field(default_factory=tuple)
    offered_cash_amount: Decimal = Decimal("0")
    message: Optional[str] = None
    trade_option: Optional[TradeOption] = None
    delivery_address: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("caller_id", self.caller_id)
        require_positive_id("target_product_id", self.target_product_id)
        for product_id in self.offered_product_ids:
            require_positive_id("offered product id", product_id)


class ProposeTradeHandler(RequestHandler[ProposeTradeCommand, Trade]):
    """Handler for ProposeTradeCommand"""

    def __init__(
        self,
        trade_repository: ITradeRepository,
        catalog: IProductCatalog,
        notifier: Optional[INotifier] = None
    ):
        self._trade_repo = trade_repository
        self._catalog = catalog
        self._notifier = notifier

    async def handle(self, request: ProposeTradeCommand) -> Trade:
        """
        Handle propose trade command

        Args:
            request: Command with the buyer, the target and the offer

        Returns:
            Newly created pending trade

        Raises:
            ProductNotFoundError: If the target or an offered product is unknown
            ProductUnavailableError: If a product is no longer available
            ProductOwnershipError: If the buyer offers a product they do not own
            ValidationError: If the buyer targets their own product or the
                offer is malformed
        """
        target = self._catalog.find_product(request.target_product_id)
        if target is None:
            raise ProductNotFoundError(f"Target product {request.target_product_id} not found")
        if not target.available:
            raise ProductUnavailableError("This product is no longer available for trading")
        if target.owner_id == request.caller_id:
            raise ValidationError("Cannot propose a trade on your own product")

        check_offered_products(self._catalog, request.caller_id, request.offered_product_ids)

        trade = Trade.propose(
            buyer_id=request.caller_id,
            seller_id=target.owner_id,
            target_product_id=target.product_id,
            offered_product_ids=request.offered_product_ids,
            offered_cash_amount=request.offered_cash_amount,
            message=request.message,
            trade_option=request.trade_option,
            delivery_address=request.delivery_address,
        )

        created = self._trade_repo.create(trade, trade.proposal_event())
        logger.info(
            f"Trade {created.trade_id} proposed by user {created.buyer_id} "
            f"for product {created.target_product_id} (seller {created.seller_id})"
        )

        notify_parties(self._notifier, created, created.proposal_event())
        return created
