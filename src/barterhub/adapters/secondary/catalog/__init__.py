"""Product catalog adapters"""
from .product_catalog_sqlalchemy import ProductCatalogSQLAlchemy

__all__ = ['ProductCatalogSQLAlchemy']
