"""
history.py — снапшоты состояния кучи и стеки undo/redo.

Снапшот хранит значения кортежем, а индексы frozenset'ом, поэтому его можно
безопасно разделять между стеками без копирования. Глубина истории
ограничивается кольцом (deque с maxlen): при переполнении выпадает
самый старый снапшот.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple

from heap_ops import Number

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    values: Tuple[Number, ...]
    impacted: FrozenSet[int]
    new_value: Optional[Number] = None

    @classmethod
    def capture(
        cls,
        values: Iterable[Number],
        impacted: Iterable[int],
        new_value: Optional[Number],
    ) -> "Snapshot":
        return cls(tuple(values), frozenset(impacted), new_value)


class History:
    """
    Пара стеков undo/redo из снапшотов.

    Args:
        limit: Максимальная глубина каждого стека; None — без ограничения.
    """

    def __init__(self, limit: Optional[int] = None):
        if limit is not None and limit < 1:
            raise ValueError(f"History limit must be positive or None, got {limit!r}")
        self.limit = limit
        self._undo: deque = deque(maxlen=limit)
        self._redo: deque = deque(maxlen=limit)

    def record(self, snapshot: Snapshot) -> None:
        """
        Запоминает состояние перед новой мутацией.

        Новая мутация всегда обнуляет redo-стек.
        """
        if self.limit is not None and len(self._undo) == self.limit:
            log.debug("history limit %d reached, dropping oldest snapshot", self.limit)
        self._undo.append(snapshot)
        self._redo.clear()

    def undo(self, current: Snapshot) -> Optional[Snapshot]:
        """
        Откатывает на шаг назад.

        Args:
            current: Текущее состояние, уходит в redo-стек.

        Returns:
            Снапшот для восстановления или None, если откатывать некуда.
        """
        if not self._undo:
            return None
        self._redo.append(current)
        return self._undo.pop()

    def redo(self, current: Snapshot) -> Optional[Snapshot]:
        if not self._redo:
            return None
        self._undo.append(current)
        return self._redo.pop()

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def __len__(self) -> int:
        return len(self._undo)
