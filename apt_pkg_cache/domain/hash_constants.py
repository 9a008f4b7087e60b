"""Hash and file layout constants for the package cache."""

HASH_ALGORITHM = "sha256"
KEY_FILE_MODE = 0o600

CACHE_KEY_PLAINTEXT_FILENAME = "cache_key.txt"
CACHE_KEY_HASH_FILENAME = f"cache_key.{HASH_ALGORITHM}"
MANIFEST_FILENAME = "manifest.json"
ARCHIVE_FILENAME = "packages.tar"
