"""
Settings and configuration for Cidian.

Paths can be overridden with environment variables so the dictionary
database and the CC-CEDICT source file can live outside the package.
"""

import os
from pathlib import Path

# Data directory paths
PACKAGE_DIR = Path(__file__).parent
DATA_DIR = PACKAGE_DIR / "data"

# Database path - defaults to data/cidian.db
DEFAULT_DB_PATH = DATA_DIR / "cidian.db"

# Environment variable for custom database path
DB_PATH = Path(os.environ.get("CIDIAN_DB_PATH", DEFAULT_DB_PATH))

# External dictionary path (user must download this)
CEDICT_PATH = Path(os.environ.get("CEDICT_PATH", DATA_DIR / "cedict_ts.u8"))

# Download URL for the external dictionary
CEDICT_URL = "https://www.mdbg.net/chinese/export/cedict/cedict_1_0_ts_utf-8_mdbg.txt.gz"

# Debug mode
DEBUG = os.environ.get("CIDIAN_DEBUG", "").lower() in ("1", "true", "yes")

# Longest query accepted from the command line (in characters)
MAX_QUERY_LENGTH = 200

# Rows per flush when loading the dictionary
LOAD_BATCH_SIZE = 5000
