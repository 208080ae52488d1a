"""Project-wide constants for the git gateway."""

CLONE_DESTINATION = "./cloned-repo"
DEFAULT_BRANCH = "main"
DEFAULT_REQUIRED_ENV = "dev"

GRAPH_LOG_FORMAT = '"%h|%ad|%s|%an"'
NO_COMMITS_MESSAGE = "No commits found"
SHORT_HASH_LENGTH = 7

FORBIDDEN_MESSAGE = "Access denied: only available in the development environment"
