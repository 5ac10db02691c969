"""Allow ``python -m stockalert``."""

from stockalert.cli import main

if __name__ == "__main__":
    main()
