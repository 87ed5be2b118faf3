"""
deployment/ - HTTP host adapter
"""

from .api import (
    CascadeRequestModel,
    CascadeResponseModel,
    ProposedStateModel,
    create_fastapi_app,
    failure_status_code,
)

__all__ = [
    "CascadeRequestModel",
    "CascadeResponseModel",
    "ProposedStateModel",
    "create_fastapi_app",
    "failure_status_code",
]
