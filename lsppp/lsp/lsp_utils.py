"""lsp utilities shared by the client and the headless host

- uri <-> path conversion
- language id detection (file type or extension)
- word prefix extraction at the cursor
"""

import re
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

WORD_CHARS = re.compile(r"[A-Za-z0-9_]+$")
WORD_CHAR = re.compile(r"[A-Za-z0-9_]")

FILETYPE_LANGUAGES = {
    "c": "c",
    "cpp": "cpp",
    "c++": "cpp",
}

EXTENSION_FILETYPES = {
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".c": "c",
    ".h": "c",
    ".hpp": "cpp",
    ".hxx": "cpp",
}


def path_to_uri(file_path: str) -> str:
    """convert file path to LSP URI format"""
    path = file_path.replace("\\", "/")
    if len(path) >= 2 and path[1] == ":":
        path = "/" + path
    return "file://" + quote(path, safe="/:")


def uri_to_path(uri: str) -> str:
    """convert LSP URI to file path"""
    path = unquote(uri[len("file://"):]) if uri.startswith("file://") else uri
    if len(path) >= 3 and path[0] == "/" and path[2] == ":":
        path = path[1:]
    return path


def filetype_from_path(file_path: str) -> Optional[str]:
    """determine editor file type from file extension"""
    return EXTENSION_FILETYPES.get(Path(file_path).suffix.lower())


def language_id(filetype: Optional[str]) -> str:
    """LSP languageId for an editor file type (defaults to c)"""
    return FILETYPE_LANGUAGES.get((filetype or "").lower(), "c")


def word_prefix(line: str, column: int) -> str:
    """identifier characters immediately left of the cursor

    Args:
        line: text of the cursor line
        column: cursor column, in characters

    Returns:
        the trailing [A-Za-z0-9_] run of line[:column] (may be empty)
    """
    if column <= 0:
        return ""
    match = WORD_CHARS.search(line[:column])
    return match.group() if match else ""


def is_word_char(char: str) -> bool:
    return bool(char) and WORD_CHAR.fullmatch(char) is not None


def relative_to_root(uri: str, root_uri: str) -> str:
    """'./relative/path' when uri lives under root_uri, otherwise the plain path"""
    prefix = root_uri.rstrip("/") + "/"
    if root_uri and uri.startswith(prefix):
        return "./" + unquote(uri[len(prefix):])
    return uri_to_path(uri)
