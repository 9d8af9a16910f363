"""Package entry point for ``python -m gridly_converter``."""

from gridly_converter.cli import main

if __name__ == "__main__":
    main()
