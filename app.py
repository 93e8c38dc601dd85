"""
App assembly entry point.

Re-exports the FastAPI `app` from `senpai.api.main`, e.g. for
`uvicorn app:app`.
"""

from senpai.api.main import app  # noqa: F401
