"""Project-wide constants (cipher sizes, storage defaults, limits)."""

AES_KEY_SIZE_BYTES: int = 32
AES_BLOCK_SIZE_BYTES: int = 16
IV_SIZE_BYTES: int = 16

DEFAULT_CONTENT_DIR: str = "./uploads"
DEFAULT_DATABASE_PATH: str = "./data/metadata.db"
DEFAULT_PORT: int = 3000

MAX_UPLOAD_BYTES: int = 500 * 1024 * 1024  # 500 MiB request body limit

ARCHIVE_FILENAME: str = "files.zip"

VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov", ".avi", ".flv")
# Extensions that the "video" sort option floats to the top
SORTABLE_VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".webm")
