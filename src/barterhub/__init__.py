"""BarterHub - peer-to-peer barter trade lifecycle core"""

__version__ = "0.1.0"
