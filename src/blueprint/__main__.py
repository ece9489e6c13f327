"""Main entry point for blueprint."""
from .cli import app

if __name__ == "__main__":
    app()
