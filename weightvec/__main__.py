"""Entry point for ``python -m weightvec``."""

from .cli import main

if __name__ == "__main__":
    main()
