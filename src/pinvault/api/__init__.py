# Vault API - Web API
#
# FastAPI backend for the browser client: account and PIN routes,
# credential CRUD over client-side encrypted records.

from .main import app, start_api_server

__all__ = [
    "app",
    "start_api_server",
]
