"""Normalized object paths shared by every store."""

from __future__ import annotations

DELIMITER = "/"


class ObjectPath(str):
    """A store-relative object path.

    Always ``/``-delimited with no leading or trailing delimiter, no empty or
    ``.`` segments and no backslashes, whatever the host platform uses.

    Examples:
        >>> str(ObjectPath("/data//index\\\\part-0.bin"))
        'data/index/part-0.bin'
        >>> str(ObjectPath("data").child("filters.json"))
        'data/filters.json'
    """

    __slots__ = ()

    def __new__(cls, raw: str = "") -> ObjectPath:
        if isinstance(raw, ObjectPath):
            return raw
        segments = [s for s in raw.replace("\\", DELIMITER).split(DELIMITER) if s and s != "."]
        return super().__new__(cls, DELIMITER.join(segments))

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(self.split(DELIMITER)) if self else ()

    @property
    def filename(self) -> str | None:
        """Last segment, or None for the empty path."""
        return self.parts[-1] if self else None

    @property
    def extension(self) -> str | None:
        name = self.filename
        if not name or "." not in name.lstrip("."):
            return None
        return name.rsplit(".", 1)[1]

    @property
    def parent(self) -> ObjectPath:
        return ObjectPath(DELIMITER.join(self.parts[:-1]))

    def child(self, name: str) -> ObjectPath:
        """Append ``name`` (which may itself contain delimiters)."""
        return ObjectPath(f"{self}{DELIMITER}{name}")

    def is_under(self, prefix: str) -> bool:
        """True if this path equals ``prefix`` or lies beneath it segment-wise."""
        prefix_parts = ObjectPath(prefix).parts
        return self.parts[: len(prefix_parts)] == prefix_parts

    def __repr__(self) -> str:
        return f"ObjectPath({str.__repr__(self)})"
