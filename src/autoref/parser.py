"""Reading Unity YAML scene, prefab and asset files.

Unity writes every serialized object of a file as its own YAML document,
introduced by a ``--- !u!<class id> &<file id>`` header. Placeholders for
objects of nested prefab instances carry a trailing ``stripped`` marker.
Document bodies are plain YAML mappings and are parsed with rapidyaml.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, NamedTuple

import ryml

HEADER_PATTERN = re.compile(r"^--- !u!(?P<class_id>\d+) &(?P<file_id>-?\d+)(?P<stripped> stripped)?\s*$")

# Built-in types a scene graph commonly holds
CLASS_IDS = {
    1: "GameObject",
    4: "Transform",
    20: "Camera",
    23: "MeshRenderer",
    33: "MeshFilter",
    54: "Rigidbody",
    65: "BoxCollider",
    82: "AudioSource",
    114: "MonoBehaviour",
    124: "Behaviour",
    212: "SpriteRenderer",
    222: "CanvasRenderer",
    223: "Canvas",
    224: "RectTransform",
    225: "CanvasGroup",
    1001: "PrefabInstance",
}

TRANSFORM_CLASS_IDS = (4, 224)


class _Header(NamedTuple):
    line: int
    class_id: int
    file_id: int
    stripped: bool

    def describe(self) -> str:
        return f"document &{self.file_id} (class {self.class_id}) at line {self.line + 1}"


def _scan_headers(lines: list[str]) -> list[_Header]:
    headers = []
    for number, line in enumerate(lines):
        match = HEADER_PATTERN.match(line)
        if match is not None:
            headers.append(
                _Header(number, int(match["class_id"]), int(match["file_id"]), match["stripped"] is not None)
            )
    return headers


def _children(tree: Any, node: int) -> Iterator[int]:
    if not tree.has_children(node):
        return
    child = tree.first_child(node)
    while child != ryml.NONE:
        yield child
        child = tree.next_sibling(child)


def _decode(view: Any) -> str:
    return bytes(view).decode("utf-8")


def _convert_scalar(text: str) -> Any:
    """Convert a plain scalar to ``int``, ``float`` or ``None`` where it reads as one.

    Digit strings with leading zeros (``007``) stay strings.
    """
    if text in ("~", "null"):
        return None
    digits = text[1:] if text.startswith("-") else text
    if digits.isascii() and digits.isdigit():
        if len(digits) > 1 and digits[0] == "0":
            return text
        return int(text)
    try:
        return float(text)
    except ValueError:
        return text


def _to_value(tree: Any, node: int) -> Any:
    if tree.is_map(node):
        return {
            (_decode(tree.key(child)) if tree.has_key(child) else ""): _to_value(tree, child)
            for child in _children(tree, node)
        }
    if tree.is_seq(node):
        return [_to_value(tree, child) for child in _children(tree, node)]
    if not tree.has_val(node) or tree.val(node) is None:
        return None
    text = _decode(tree.val(node))
    return _convert_scalar(text) if text else ""


def _parse_body(body: str, header: _Header) -> dict[str, Any]:
    if not body.strip():
        return {}
    try:
        tree = ryml.parse_in_arena(body.encode("utf-8"))
        data = _to_value(tree, tree.root_id())
    except Exception as e:
        raise ValueError(f"Failed to parse {header.describe()}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"The body of {header.describe()} is not a mapping")
    return data


def parse_unity_yaml(content: str) -> list[tuple[int, int, bool, dict[str, Any]]]:
    """Parse every document of a Unity YAML file.

    Args:
        content: Text of a ``.unity``, ``.prefab`` or ``.asset`` file

    Returns:
        ``(class_id, file_id, stripped, data)`` per document, in file order

    Raises:
        ValueError: A document body is not a YAML mapping
    """
    lines = content.split("\n")
    headers = _scan_headers(lines)
    ends = [header.line for header in headers[1:]] + [len(lines)]
    return [
        (header.class_id, header.file_id, header.stripped, _parse_body("\n".join(lines[header.line + 1 : end]), header))
        for header, end in zip(headers, ends)
    ]


@dataclass
class UnityYAMLObject:
    """One serialized object of a Unity YAML file."""

    class_id: int
    file_id: int
    data: dict[str, Any]
    stripped: bool = False

    @property
    def root_key(self) -> str | None:
        """The top-level key naming the serialized type, e.g. ``MonoBehaviour``."""
        return next(iter(self.data), None)

    @property
    def class_name(self) -> str:
        return self.root_key or CLASS_IDS.get(self.class_id, f"Unknown({self.class_id})")

    def get_content(self) -> dict[str, Any] | None:
        """The serialized fields under the root key, or None when there are none."""
        body = self.data.get(self.root_key) if self.root_key else None
        return body if isinstance(body, dict) else None

    def __repr__(self) -> str:
        return f"<{self.class_name} &{self.file_id}>"


@dataclass
class UnityYAMLDocument:
    """All objects of one scene, prefab or asset file, in file order."""

    objects: list[UnityYAMLObject] = field(default_factory=list)
    source_path: Path | None = None

    def __post_init__(self) -> None:
        self._index = {obj.file_id: obj for obj in self.objects}

    def __iter__(self) -> Iterator[UnityYAMLObject]:
        return iter(self.objects)

    def __len__(self) -> int:
        return len(self.objects)

    def get_by_file_id(self, file_id: int) -> UnityYAMLObject | None:
        return self._index.get(file_id)

    def get_by_class_id(self, class_id: int) -> list[UnityYAMLObject]:
        return [obj for obj in self.objects if obj.class_id == class_id]

    @classmethod
    def parse(cls, content: str, source_path: Path | None = None) -> UnityYAMLDocument:
        objects = [
            UnityYAMLObject(class_id, file_id, data, stripped)
            for class_id, file_id, stripped, data in parse_unity_yaml(content)
        ]
        return cls(objects, source_path)

    @classmethod
    def load(cls, path: str | Path) -> UnityYAMLDocument:
        """Read and parse a file from disk.

        Raises:
            OSError: The file cannot be read
            ValueError: The file is not valid Unity YAML
        """
        path = Path(path)
        return cls.parse(path.read_text(encoding="utf-8"), source_path=path)


def parse_file_reference(ref: Any) -> int:
    """Get the fileID of a ``{fileID: ...}`` reference, or 0."""
    if not isinstance(ref, dict):
        return 0
    try:
        return int(ref.get("fileID", 0))
    except (TypeError, ValueError):
        return 0
