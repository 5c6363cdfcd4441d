#!/usr/bin/env python3
"""Bank Statement Ledger Extraction Tool.

Entry point script that runs the package CLI from a source checkout.

Usage:
    python extract_statement.py statement.pdf --output ledger.xlsx

For full documentation and options:
    python extract_statement.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from statement_ledger.cli import main

if __name__ == "__main__":
    sys.exit(main())
