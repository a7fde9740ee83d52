"""Product catalog port interface"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CatalogProduct:
    """Read-only view of a listed product"""
    product_id: int
    owner_id: int
    title: str
    available: bool = True


class IProductCatalog(ABC):
    """
    Port interface for product lookups.

    Trades only consult the catalog (existence, ownership, availability);
    they never change product ownership or status.
    """

    @abstractmethod
    def find_product(self, product_id: int) -> Optional[CatalogProduct]:
        """
        Look up a product.

        Args:
            product_id: Catalog product ID

        Returns:
            CatalogProduct or None if not found
        """
        pass
