from pathlib import Path
import enum


class FileTypes(enum.StrEnum):
    """Enum of the source file types the parser understands"""

    TYPESCRIPT = "typescript"
    TSX = "tsx"
    DECLARATION = "declaration"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_path(cls, path: Path):
        if path.name.endswith(".d.ts"):
            return cls.DECLARATION

        match path.suffix:
            case ".ts" | ".mts" | ".cts":
                return cls.TYPESCRIPT
            case ".tsx":
                return cls.TSX
            case _:
                return cls.UNKNOWN


TEST_FILE_SUFFIXES = (".spec.ts", ".test.ts", ".spec.tsx", ".test.tsx")


def is_test_file(path: Path) -> bool:
    return path.name.endswith(TEST_FILE_SUFFIXES)
