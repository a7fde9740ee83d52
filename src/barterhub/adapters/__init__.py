"""Adapters layer - primary (CLI) and secondary (persistence, catalog, notifications)"""
