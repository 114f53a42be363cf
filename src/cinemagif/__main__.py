"""Allow ``python -m cinemagif``."""

from .cli import main

if __name__ == "__main__":
    main()
