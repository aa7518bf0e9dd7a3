from __future__ import annotations
from typing import Optional


class GatewayError(Exception):
    """Base class for errors the chat endpoint knows how to report"""


class ClientInputError(GatewayError):
    # Malformed request body, reported before any backend is contacted
    pass


class BackendError(GatewayError):
    """A collaborator (model runtime or catalog service) failed

    Either it answered with a non-success status or it could not be reached
    """

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"{service} error {status_code}: {message}")
        else:
            super().__init__(f"{service} error: {message}")
