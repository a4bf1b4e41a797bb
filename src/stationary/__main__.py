"""Module entry point: python -m stationary ..."""

from .cli import main

if __name__ == "__main__":
    main()
