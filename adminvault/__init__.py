"""
adminvault: durable, integrity-checked store of administrator accounts.
"""

__version__ = "0.3.0"
