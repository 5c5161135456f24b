"""notionview - typed JSON views over Notion pages and collections.

Decodes Notion's private block graph into rows, columns and users and
serves them over HTTP.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
