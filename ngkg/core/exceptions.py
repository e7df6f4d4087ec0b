"""
Exceptions raised by project parsing.

Only project-fatal conditions and cancellation surface as exceptions from a
parse call. Per-file and per-visitor failures are recorded as issues on the
parse result instead.
"""


def _with_details(message: str, **details) -> str:
    parts = [f"{key}={value}" for key, value in details.items() if value is not None]
    if parts:
        return f"{message} [{', '.join(parts)}]"
    return message


class NgkgError(Exception):
    """Base class for all errors raised by ngkg."""
    pass


class ProjectLoadError(NgkgError):
    """Raised when the project itself cannot be loaded.

    This can occur when:
      - The root directory does not exist or is not a directory
      - No TypeScript source files are found under the root
      - An explicitly configured tsconfig is missing or unparsable

    Attributes:
        message: Explanation of the error
        root_dir: The project root being loaded (if available)
        config_path: The configuration file involved (if available)
    """

    def __init__(
        self,
        message: str,
        root_dir: str | None = None,
        config_path: str | None = None,
    ):
        self.message = message
        self.root_dir = root_dir
        self.config_path = config_path
        super().__init__(_with_details(message, root=root_dir, config=config_path))


class ParseCancelledError(NgkgError):
    """Raised when a parse is stopped by its cancel event or deadline.

    Attributes:
        files_processed: Number of files fully traversed before stopping
        reason: "cancelled" or "deadline"
    """

    def __init__(self, files_processed: int, reason: str = "cancelled"):
        self.files_processed = files_processed
        self.reason = reason
        super().__init__(
            _with_details("Project parse stopped", reason=reason, files_processed=files_processed)
        )


class SourceParseError(NgkgError):
    """Raised when a single source file cannot be read or parsed."""

    def __init__(self, message: str, file_path: str | None = None):
        self.message = message
        self.file_path = file_path
        super().__init__(_with_details(message, file=file_path))


class ConfigLoadError(NgkgError):
    """Raised when a tsconfig or package.json file cannot be parsed."""

    def __init__(self, message: str, config_path: str | None = None):
        self.message = message
        self.config_path = config_path
        super().__init__(_with_details(message, config=config_path))
