import sys

from modpub.main import main

if __name__ == "__main__":
    sys.exit(main())
