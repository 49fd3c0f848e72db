"""HTTP client collaborator used by steps."""

from stepqa.http.client import AsyncClient, Client, RequestRecord, Response

__all__ = ["AsyncClient", "Client", "RequestRecord", "Response"]
