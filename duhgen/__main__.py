"""Entry point: python -m duhgen"""

from .cli import main

if __name__ == "__main__":
    main()
