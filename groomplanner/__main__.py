"""
Entry point for ``python -m groomplanner``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
