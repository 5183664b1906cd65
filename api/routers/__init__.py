"""
FastAPI routers grouped by resource (auth, profiles, cards, admin, etc.).

Each module exposes an APIRouter that api.app includes under /api.
"""
