"""SQLAlchemy-backed product catalog."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, insert, update
from sqlalchemy.engine import Engine

from ....domain.shared.exceptions import ProductNotFoundError, ValidationError
from ....ports.outbound.catalog import IProductCatalog, CatalogProduct
from ..persistence.models import products

logger = logging.getLogger(__name__)

STATUS_AVAILABLE = 'available'
STATUS_UNAVAILABLE = 'unavailable'


class ProductCatalogSQLAlchemy(IProductCatalog):
    """
    Product catalog stored in the products table

    Trades only read from it. add_product() and set_available() exist for
    the catalog CLI and for test setup.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    def find_product(self, product_id: int) -> Optional[CatalogProduct]:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(products).where(products.c.product_id == product_id)
            ).fetchone()
        if not row:
            return None
        return self._map_to_domain(row)

    def find_by_owner(self, owner_id: int) -> List[CatalogProduct]:
        stmt = (
            select(products)
            .where(products.c.owner_id == owner_id)
            .order_by(products.c.product_id)
        )
        with self._engine.connect() as conn:
            return [self._map_to_domain(row) for row in conn.execute(stmt)]

    def add_product(self, owner_id: int, title: str) -> CatalogProduct:
        """
        List a new available product.

        Raises:
            ValidationError: If the owner id or title is invalid
        """
        if isinstance(owner_id, bool) or not isinstance(owner_id, int) or owner_id <= 0:
            raise ValidationError(f"owner_id must be a positive integer, got {owner_id!r}")
        title = (title or "").strip()
        if not title:
            raise ValidationError("A product title is required")

        with self._engine.begin() as conn:
            result = conn.execute(
                insert(products).values(
                    owner_id=owner_id,
                    title=title,
                    status=STATUS_AVAILABLE,
                    created_at=datetime.now(timezone.utc),
                )
            )
            product_id = int(result.inserted_primary_key[0])

        logger.info(f"Listed product {product_id} '{title}' for user {owner_id}")
        return CatalogProduct(product_id=product_id, owner_id=owner_id, title=title, available=True)

    def set_available(self, product_id: int, available: bool) -> CatalogProduct:
        """
        Mark a product available or unavailable.

        Raises:
            ProductNotFoundError: If the product does not exist
        """
        status = STATUS_AVAILABLE if available else STATUS_UNAVAILABLE
        with self._engine.begin() as conn:
            result = conn.execute(
                update(products)
                .where(products.c.product_id == product_id)
                .values(status=status)
            )
            if result.rowcount == 0:
                raise ProductNotFoundError(f"Product {product_id} not found")

        logger.info(f"Product {product_id} marked {status}")
        return self.find_product(product_id)

    @staticmethod
    def _map_to_domain(row) -> CatalogProduct:
        return CatalogProduct(
            product_id=int(row.product_id),
            owner_id=int(row.owner_id),
            title=row.title,
            available=row.status == STATUS_AVAILABLE,
        )
