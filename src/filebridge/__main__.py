"""Allow `python -m filebridge`."""

from .cli import main

if __name__ == "__main__":
    main()
