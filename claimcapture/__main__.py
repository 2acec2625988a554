import sys

from .capture import main

if __name__ == "__main__":
    sys.exit(main())
