"""Map raw iManage document records onto the two outbound shapes.

Both projections read the record through :class:`DocumentView`, which
applies the defaulting rules once: a missing field becomes ``"Unknown"``,
an empty string or ``0``, never an exception.  Metadata values in the
standardized shape are always strings because the orchestration client
expects string-typed metadata.
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

UNKNOWN = "Unknown"

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_file_size(size: Any) -> str:
    """Human readable size: ``0 Bytes``, ``1.5 KB``, ``2 MB``."""
    try:
        value = float(size or 0)
    except (TypeError, ValueError):
        value = 0.0
    if value <= 0:
        return "0 Bytes"
    exponent = 0
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[exponent]}"


def _text(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    return str(value)


def _number(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value or 0


@dataclass(frozen=True)
class DocumentView:
    """Defaulted, read-only view over one upstream document record."""

    record: Mapping[str, Any]

    def get(self, key: str) -> Any:
        if isinstance(self.record, Mapping):
            return self.record.get(key)
        return None

    @property
    def id(self) -> str:
        return _text(self.get("id"))

    @property
    def title(self) -> str:
        return _text(self.get("name"), self.id)

    @property
    def url(self) -> Optional[str]:
        return self.get("iwl") or None

    @property
    def author(self) -> str:
        return _text(self.get("author_description") or self.get("author"), UNKNOWN)

    @property
    def workspace(self) -> str:
        return _text(self.get("workspace_name"), UNKNOWN)

    @property
    def size(self) -> Any:
        return _number(self.get("size"))

    @property
    def edit_date(self) -> str:
        return _text(self.get("edit_date"), UNKNOWN)

    @property
    def document_type(self) -> str:
        return _text(self.get("type_description") or self.get("type"), UNKNOWN)

    def custom(self, n: int) -> str:
        return _text(self.get(f"custom{n}_description"))

    @property
    def summary(self) -> str:
        workspace = _text(self.get("workspace_name"), "Unknown workspace")
        doc_type = _text(self.get("type_description") or self.get("type"), "Unknown type")
        return (
            f"{workspace} - {self.custom(1)} {self.custom(2)} - "
            f"{doc_type} ({format_file_size(self.size)})"
        ).strip()

    def base_metadata(self) -> Dict[str, str]:
        return {
            "author": self.author,
            "workspace": self.workspace,
            "size": str(self.size),
            "edit_date": self.edit_date,
            "document_type": self.document_type,
            "custom1": self.custom(1),
            "custom2": self.custom(2),
            "custom3": self.custom(3),
        }

    def fetch_metadata(self) -> Dict[str, str]:
        metadata = self.base_metadata()
        metadata.update(
            {
                "author_email": _text(self.get("author")),
                "workspace_id": _text(self.get("workspace_id")),
                "create_date": _text(self.get("create_date"), UNKNOWN),
                "extension": _text(self.get("extension")),
                "version": str(_number(self.get("version")) or 1),
                "database": _text(self.get("database")),
                "document_number": _text(self.get("document_number")),
                "last_user": _text(
                    self.get("last_user_description") or self.get("last_user")
                ),
                "default_security": _text(self.get("default_security"), "private"),
            }
        )
        return metadata


# Keys every legacy record carries, with their fallbacks.
_LEGACY_DEFAULTS = {
    "author": UNKNOWN,
    "workspace_name": UNKNOWN,
    "size": 0,
    "edit_date": UNKNOWN,
    "type": UNKNOWN,
}


def project_legacy(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Flat legacy shape: the raw record with well-known keys filled in."""
    view = DocumentView(record)
    legacy = dict(record) if isinstance(record, Mapping) else {}
    legacy["id"] = view.id
    legacy["name"] = view.title
    for key, default in _LEGACY_DEFAULTS.items():
        if legacy.get(key) is None:
            legacy[key] = default
    return legacy


def project_search_result(record: Mapping[str, Any]) -> Dict[str, Any]:
    view = DocumentView(record)
    return {
        "id": view.id,
        "title": view.title,
        "summary": view.summary,
        "url": view.url,
        "metadata": view.base_metadata(),
    }


def project_fetch_result(record: Mapping[str, Any], text: str = "") -> Dict[str, Any]:
    view = DocumentView(record)
    return {
        "id": view.id,
        "title": view.title,
        "text": text,
        "url": view.url,
        "metadata": view.fetch_metadata(),
    }


def describe_content(content: bytes, doc_type: Any = None) -> str:
    """Size-annotated base64 payload used as the ``text`` of a fetch."""
    encoded = base64.b64encode(content).decode("ascii")
    return (
        f"Document content ({format_file_size(len(content))} "
        f"{_text(doc_type, 'file')}): {encoded}"
    )
