"""Cross-cutting application services"""
