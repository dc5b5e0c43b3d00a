"""Exceptions shared by the clients for third-party APIs."""


class IntegrationError(Exception):
    """An upstream API call failed or returned something unusable."""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
