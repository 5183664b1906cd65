"""
Core utilities shared across the Inutile Cards API.

This package hosts configuration, the error taxonomy and response envelope,
password/token security helpers, the mailer, logging setup and rate limiting.
Routers and services depend on these primitives instead of reading the
environment or formatting responses themselves.
"""
