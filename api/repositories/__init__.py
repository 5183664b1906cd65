"""
Persistence adapters.

SQLRepository wraps the SQLAlchemy session; services receive one instance
(built in the app lifespan) instead of opening sessions themselves.
"""
