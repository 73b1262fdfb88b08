"""
Minimal nested-tag XML emitter.

Attribute values are substituted literally; callers must not pass values
that need XML escaping.
"""

from typing import List, Optional, Sequence, TextIO, Tuple

from ..errors import WriteStateError


Attribute = Tuple[str, str]


class XmlWriter:
    """Writes open/close tag pairs and enforces their nesting order."""

    def __init__(self, indent: str = "  "):
        self.indent = indent
        self._tag_stack: List[str] = []
        self._header_written = False

    @property
    def depth(self) -> int:
        return len(self._tag_stack)

    @property
    def open_tags(self) -> Tuple[str, ...]:
        return tuple(self._tag_stack)

    def header(self, stream: TextIO, version: str = "1.0", encoding: str = "UTF-8") -> None:
        """Write the XML declaration; allowed once per document."""
        if self._header_written:
            raise WriteStateError("XML declaration already written for this document")
        stream.write(f'<?xml version="{version}" encoding="{encoding}"?>\n')
        self._header_written = True

    def open_tag(self, stream: TextIO, name: str,
                 attributes: Optional[Sequence[Attribute]] = None) -> None:
        attrs = "".join(f' {key}="{value}"' for key, value in (attributes or ()))
        stream.write(f"{self.indent * self.depth}<{name}{attrs}>\n")
        self._tag_stack.append(name)

    def close_tag(self, stream: TextIO) -> str:
        """Close the innermost open tag and return its name."""
        if not self._tag_stack:
            raise WriteStateError("close_tag called with no open tag")
        name = self._tag_stack.pop()
        stream.write(f"{self.indent * self.depth}</{name}>\n")
        return name

    def check_balanced(self) -> None:
        if self._tag_stack:
            raise WriteStateError(f"Unclosed tags: {', '.join(self._tag_stack)}")

    def reset(self) -> None:
        """Forget all state so a new document can be started."""
        self._tag_stack.clear()
        self._header_written = False
