"""markedspace: publish a tree of Markdown documents as Confluence storage format."""

__version__ = "0.4.0"
