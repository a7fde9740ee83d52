"""Outbound ports for external collaborators"""
