"""Primary adapters (driving side)"""
