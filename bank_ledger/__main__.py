"""Entry point for ``python -m bank_ledger``"""

import sys

from .shell import main


if __name__ == "__main__":
    sys.exit(main())
