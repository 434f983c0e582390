"""Allow ``python -m guidelint``."""

from guidelint.cli.main import main

if __name__ == "__main__":
    main()
