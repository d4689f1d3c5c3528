"""
lanscout - local network device and printer discovery service.
"""

__version__ = "0.1.0"
