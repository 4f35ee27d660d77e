"""
Insurance Kernel

Back-office core for an insurance company:
- Clients, contracts, claims, indemnifications, premiums, folders
- Guarded status lifecycles
- Before/after history of every mutation, tied to the acting user
- Immutable folder archives
"""

__version__ = "0.1.0"
