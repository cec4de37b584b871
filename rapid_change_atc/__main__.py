import sys

from rapid_change_atc.cli import main

if __name__ == "__main__":
    sys.exit(main())
