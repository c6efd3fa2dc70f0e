"""Allow ``python -m create_monorepo``."""

from create_monorepo.cli import main

if __name__ == "__main__":
    main()
