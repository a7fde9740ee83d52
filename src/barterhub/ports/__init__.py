"""Port interfaces for dependency inversion"""
from .repositories import ITradeRepository
from .outbound.catalog import IProductCatalog, CatalogProduct
from .outbound.notifier import INotifier

__all__ = ['ITradeRepository', 'IProductCatalog', 'CatalogProduct', 'INotifier']
