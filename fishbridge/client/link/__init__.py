"""Links to the fish language server."""

from fishbridge.client.link.base import LinkHandshake, LinkUnavailableError, ServerLink
from fishbridge.client.link.lsp import LspServerLink

__all__ = ["LinkHandshake", "LinkUnavailableError", "LspServerLink", "ServerLink"]
