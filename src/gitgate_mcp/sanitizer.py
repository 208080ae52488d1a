"""Validation and shell escaping of caller-supplied command parameters."""

from __future__ import annotations

import logging
import re
import shlex
from collections.abc import Mapping
from urllib.parse import urlparse

from .errors import ErrorCode, GatewayError
from .models import Action, SanitizedParameters

logger = logging.getLogger(__name__)

ALLOWED_URL_SCHEMES = {"http", "https", "git"}
TRAVERSAL_MARKER = ".."
UNSAFE_URL_CHARACTERS = re.compile(r"[\s\x00-\x1f\x7f]")


class ParameterSanitizer:
    """Turn untrusted request parameters into single, atomic shell arguments."""

    def sanitize_files(self, raw_files: str) -> tuple[str, ...]:
        """Escape each space-delimited path, dropping empty and traversal tokens."""
        sanitized: list[str] = []
        rejected: list[str] = []
        for token in str(raw_files).split(" "):
            if not token or TRAVERSAL_MARKER in token:
                if token:
                    rejected.append(token)
                continue
            sanitized.append(shlex.quote(token))

        if rejected:
            logger.warning("Dropped %d file token(s) containing '..'.", len(rejected))
        if not sanitized:
            raise GatewayError(
                ErrorCode.NO_VALID_INPUT,
                "No valid files provided.",
                "Pass repository-relative paths separated by spaces, without '..'.",
                {"rejected": rejected},
            )
        return tuple(sanitized)

    def sanitize_message(self, raw_message: str) -> str:
        return shlex.quote(str(raw_message))

    def sanitize_url(self, raw_url: str) -> str:
        """Validate a clone URL (syntax plus scheme allow-list) and escape it."""
        url = str(raw_url)
        if not _is_valid_url(url):
            raise GatewayError(
                ErrorCode.INVALID_URL,
                "Invalid Git URL provided.",
                "Use an absolute http://, https:// or git:// repository URL.",
            )
        return shlex.quote(url)

    def sanitize_for(self, action: Action, parameters: Mapping[str, str]) -> SanitizedParameters:
        """Sanitize only the parameter the action consumes; other keys are ignored."""
        if action == Action.ADD_FILE and "files" in parameters:
            return SanitizedParameters(files=self.sanitize_files(parameters["files"]))
        if action == Action.COMMIT and "message" in parameters:
            return SanitizedParameters(message=self.sanitize_message(parameters["message"]))
        if action == Action.CLONE and "url" in parameters:
            return SanitizedParameters(url=self.sanitize_url(parameters["url"]))
        return SanitizedParameters()


def _is_valid_url(url: str) -> bool:
    if not url or UNSAFE_URL_CHARACTERS.search(url):
        return False
    try:
        parsed = urlparse(url)
        # Accessing port validates its range and raises ValueError otherwise.
        parsed.port
    except ValueError:
        return False
    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES:
        return False
    if not parsed.netloc or not parsed.hostname:
        return False
    return url.lower().startswith(f"{parsed.scheme.lower()}://")
