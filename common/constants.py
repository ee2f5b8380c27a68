"""Project-wide constants (default pool, ports, paths)."""

DEFAULT_POOL_NAME: str = "test"
DEFAULT_STORAGE_PATH: str = "/app/data/pools"
DEFAULT_SERVER_PORT: int = 8000
DEFAULT_MOUNT_PREFIX: str = "/dav"

ROOT_MARKERS = ("", "/")
PATH_SEPARATOR = "/"

OBJECT_FILE_SUFFIX = ".obj"
TEMP_FILE_SUFFIX = ".tmp"
METADATA_LOG_PREFIX = ".md/"
METADATA_ROOT_DIRECTORY = "root/"
