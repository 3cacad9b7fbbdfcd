from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, Tuple, Union

from .errors import ClassFileNotFound, ClassNotFound, MalformedClassFile

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ClassCatalog:
    """
    Ordered class names; the position of a name is its class id.
    """

    names: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __getitem__(self, class_id: int) -> str:
        if isinstance(class_id, bool) or not 0 <= int(class_id) < len(self.names):
            raise ClassNotFound(f"Class id {class_id!r} is outside the catalog (size {len(self.names)})")
        return self.names[int(class_id)]


def load_class_names(path: PathLike) -> ClassCatalog:
    """
    Load a darknet-style names file (e.g. `coco.names`).

    One class per line, line index = class id:

        person
        bicycle
        car
        ...

    Lines are whitespace-trimmed. Trailing blank lines are ignored, interior
    blank lines keep their slot so the remaining ids stay aligned.
    """

    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ClassFileNotFound(f"Failed to open class file: {p}") from exc

    names = [line.strip() for line in raw.splitlines()]
    while names and not names[-1]:
        names.pop()
    if not names:
        raise MalformedClassFile(f"Class file is empty: {p}")

    LOGGER.info("Loaded %d class names from %s", len(names), p)
    return ClassCatalog(names=tuple(names))


def resolve_class_id(catalog: ClassCatalog, name: str) -> int:
    wanted = name.strip()
    for class_id, entry in enumerate(catalog.names):
        if entry == wanted:
            return class_id
    raise ClassNotFound(f"Class '{wanted}' not found")


def resolve_whitelist(catalog: ClassCatalog, names: Iterable[str]) -> FrozenSet[int]:
    return frozenset(resolve_class_id(catalog, name) for name in names)
