"""
Use cases for the Inutile Cards API.

Each service orchestrates the repository to implement business rules
(register, activate a card, reorder links, bind a subscription, etc.) and
raises api.core.errors exceptions that the app turns into error envelopes.
Routers call these services instead of touching the database directly.
"""
