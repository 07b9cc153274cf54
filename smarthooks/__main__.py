"""Allow ``python -m smarthooks``."""

from smarthooks.cli import main

if __name__ == "__main__":
    main()
