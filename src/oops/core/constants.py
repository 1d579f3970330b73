"""Centralized constants for oops.

On-disk names are part of the persisted layout: changing one orphans
every existing workspace.
"""

# =============================================================================
# Workspace layout
# =============================================================================

# Default workspace directory name (created in the current directory)
WORKSPACE_DIR_NAME: str = ".oops"

# Top-level metadata files
CONFIG_FILE_NAME: str = "config.json"
STATE_FILE_NAME: str = "state.json"

# Payload directories
FILES_DIR_NAME: str = "files"
VERSIONS_DIR_NAME: str = "versions"

# Backup payload inside files/<hash>/
BACKUP_FILE_NAME: str = "backup"

# Version store files inside versions/<hash>/
VERSIONS_LOG_NAME: str = "versions.json"
CURRENT_POINTER_NAME: str = "current.txt"

# Metadata files that must exist for a workspace to be healthy
REQUIRED_METADATA_FILES: tuple[str, ...] = (CONFIG_FILE_NAME, STATE_FILE_NAME)

# Workspace format version written into config.json
WORKSPACE_FORMAT_VERSION: str = "0.3.0"

# =============================================================================
# Hashing
# =============================================================================

# Hex characters kept from the sha256 of a canonical path
FILE_HASH_LENGTH: int = 16

# =============================================================================
# Versions
# =============================================================================

INITIAL_VERSION: int = 1
INITIAL_VERSION_MESSAGE: str = "Initial version"
PROMOTED_VERSION_MESSAGE: str = "Promoted from backup"

# =============================================================================
# Diff
# =============================================================================

DIFF_ALGORITHM_ALIGNED: str = "aligned"
DIFF_ALGORITHM_POSITIONAL: str = "positional"
DEFAULT_DIFF_CONTEXT: int = 3

# =============================================================================
# Environment / logging
# =============================================================================

LOGGER_NAME: str = "oops"
ENV_PREFIX: str = "OOPS_"
WORKSPACE_ENV: str = "OOPS_WORKSPACE"
LOG_LEVEL_ENV: str = "OOPS_LOG_LEVEL"

# Prefix for temporary workspaces
TEMP_WORKSPACE_PREFIX: str = "oops-temp-"

# Text encoding for tracked files and metadata
TEXT_ENCODING: str = "utf-8"
