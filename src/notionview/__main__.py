"""Entry point for 'python -m notionview' command.

This module allows the notionview CLI to be invoked using
'python -m notionview serve'.
"""

from notionview.cli import main

if __name__ == "__main__":
    main()
