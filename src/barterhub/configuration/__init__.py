"""Settings, user config and dependency wiring"""
