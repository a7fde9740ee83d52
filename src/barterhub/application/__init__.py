"""Application layer - commands, queries and pipeline behaviors"""
