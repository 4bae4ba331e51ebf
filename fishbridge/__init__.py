"""fishbridge -- workspace-folder bridge between an editor and fish-lsp."""

__version__ = "0.1.0"
