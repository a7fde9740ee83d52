"""Secondary adapters (driven side)"""
