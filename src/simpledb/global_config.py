"""Global, project-wide configuration constants.

This module intentionally contains **no business logic** – only simple,
shared filesystem anchors and cross-cutting constants that many modules
can import.

Connection settings that depend on the environment live in
`simpledb.database.config` and build on top of these anchors.
"""

from pathlib import Path

# Core roots
PACKAGE_ROOT: Path = Path(__file__).resolve().parent
# From src/simpledb/global_config.py, go up two levels: src/simpledb -> src -> repo root
PROJECT_ROOT: Path = PACKAGE_ROOT.parent.parent

# Core Names
PROJECT_NAME = "simpledb"
PACKAGE_NAME = "simpledb"

# Environment variables are read with this prefix (SIMPLEDB_HOST, ...)
ENV_PREFIX = "SIMPLEDB_"

# Database directories
DB_DIR: Path = PROJECT_ROOT / "db"

# Driver defaults
DEFAULT_DRIVER = "mysql"
DEFAULT_PORTS: dict[str, int] = {
    "mysql": 3306,
}
