"""Path filters deciding which files are worth indexing."""

import posixpath

from projectrag.utils.paths import normalize_separators, split_parts

MAX_FILE_SIZE = 3 * 1024 * 1024  # 3 MiB

TEXT_EXTENSIONS = frozenset({
    # Web / JS
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue", ".svelte", ".elm",
    # Python
    ".py", ".pyw", ".pyx",
    # JVM / native
    ".java", ".kt", ".scala", ".go", ".rs",
    ".c", ".cc", ".cpp", ".cxx", ".h", ".hpp", ".hxx",
    ".cs", ".vb", ".fs", ".swift", ".dart",
    # Scripting
    ".php", ".rb", ".pl", ".lua", ".r", ".m", ".sql",
    ".sh", ".bash", ".zsh", ".fish", ".ps1", ".bat", ".cmd",
    # Docs
    ".md", ".markdown", ".txt", ".rst", ".adoc", ".log",
    # Config / markup
    ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".conf", ".xml",
    ".html", ".htm", ".css", ".scss", ".sass", ".less",
    ".dockerfile", ".makefile", ".cmake",
    ".env", ".gitignore", ".gitattributes", ".editorconfig", ".prettierrc", ".eslintrc",
})

BINARY_EXTENSIONS = frozenset({
    # Images
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".ico",
    ".tiff", ".tif", ".psd", ".ai", ".eps", ".raw", ".cr2", ".nef",
    ".orf", ".sr2", ".heic", ".heif", ".avif",
    # Executables / objects
    ".exe", ".dll", ".so", ".dylib", ".bin", ".dat", ".o", ".obj", ".a", ".lib",
    ".pyc", ".pyo", ".class", ".jar", ".war", ".ear", ".wasm",
    # Archives
    ".zip", ".tar", ".gz", ".bz2", ".xz", ".7z", ".rar",
    # Documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods", ".odp",
    # Databases
    ".db", ".sqlite", ".sqlite3", ".mdb",
    # Media
    ".mp3", ".mp4", ".avi", ".mov", ".wmv", ".flv", ".mkv", ".wav", ".flac", ".webm",
    # Fonts
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
})

# Extensionless files kept when the basename contains one of these
COMMON_TEXT_NAMES = (
    "readme", "license", "changelog", "authors", "contributors", "makefile", "dockerfile",
)

IGNORED_NAMES = frozenset({
    # Dependencies / build output
    "node_modules", "dist", "build", "out", "target", "vendor", "coverage",
    ".next", ".nyc_output", ".cache", ".parcel-cache", ".turbo", ".vercel",
    # Python
    "__pycache__", ".pytest_cache", ".mypy_cache", ".venv", "venv", "env", ".env",
    # VCS metadata
    ".git", ".svn", ".hg",
    # Editors / OS
    ".idea", ".vscode", ".sublime-project", ".sublime-workspace", ".DS_Store",
})


def file_extension(path: str) -> str:
    """Lowercased extension; a dot-file like `.gitignore` is its own extension."""
    name = posixpath.basename(normalize_separators(path)).lower()
    stem, ext = posixpath.splitext(name)
    if not ext and stem.startswith("."):
        return stem
    return ext


def is_text_file(path: str) -> bool:
    """Check if a file should be indexed based on its name."""
    ext = file_extension(path)

    if ext in BINARY_EXTENSIONS:
        return False
    if ext in TEXT_EXTENSIONS:
        return True

    if not ext:
        basename = posixpath.basename(normalize_separators(path)).lower()
        return any(name in basename for name in COMMON_TEXT_NAMES)

    # Unknown extensions are assumed binary
    return False


def is_ignored_path(path: str) -> bool:
    """Check if any component of a path is a well-known non-source name."""
    return any(part in IGNORED_NAMES for part in split_parts(path))

