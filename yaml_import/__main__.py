"""Allow running as ``python -m yaml_import``."""

from yaml_import.main import main


if __name__ == "__main__":
    main()
