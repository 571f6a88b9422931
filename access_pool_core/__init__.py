"""
Credential pool and token lifecycle manager.

Dispenses `login:secret` pool entries exactly once behind short random
tokens, keeps a ledger of issued tokens and exposes the administrator
commands of the chat bot through a transport-agnostic command router.
"""

__version__ = "0.1.0"
