import sys

from microfed.cli import main

if __name__ == "__main__":
    sys.exit(main())
