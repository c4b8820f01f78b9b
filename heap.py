import logging
import math
from typing import Iterable, List, Optional

import heap_ops
from heap_ops import Number, SwapHook

log = logging.getLogger(__name__)


class MaxHeap:
    """
    Бинарная max-куча на плотном массиве чисел.

    Возможности:
        - Вставка с подъёмом и извлечение максимума со спуском.
        - Поиск n-го наибольшего элемента без изменения кучи.
        - Необязательный колбэк on_swap у мутирующих операций: через него
          внешний код наблюдает перестановки, не наследуясь от кучи.

    Примечания:
        - Вся структурная работа делегируется чистым функциям heap_ops.
        - values всегда возвращает копию, внутренний список наружу не отдаётся.
    """

    def __init__(self):
        self._data: List[Number] = []

    @classmethod
    def from_values(cls, values: Iterable[Number]) -> "MaxHeap":
        """
        Создаёт кучу из уже упорядоченного массива без перестройки.

        Используется для восстановления снапшотов: массив берётся как есть.

        Args:
            values: Значения в порядке массива кучи.
        """
        heap = cls()
        heap._data = list(values)
        return heap

    # ---------- PUBLIC API ----------

    def insert(self, value: Number, on_swap: SwapHook = None) -> None:
        """
        Добавляет значение в кучу (вставка в конец и подъём).

        Args:
            value: Вставляемое число.
            on_swap: Колбэк (i, j) для каждой перестановки при подъёме.
        """
        heap_ops.push(self._data, value, on_swap)
        log.debug("insert %r -> size=%d", value, len(self._data))

    def extract_max(self, on_swap: SwapHook = None) -> Optional[Number]:
        """
        Извлекает и возвращает максимальный элемент.

        Args:
            on_swap: Колбэк (i, j) для каждой перестановки при спуске.

        Returns:
            Максимум или None, если куча пуста.
        """
        root = heap_ops.pop_max(self._data, on_swap)
        log.debug("extract_max -> %r, size=%d", root, len(self._data))
        return root

    def find_nth_largest(self, n: int) -> Number:
        """
        Возвращает n-й наибольший элемент (1 — максимум).

        Args:
            n: Порядковый номер, 1 <= n <= size.

        Raises:
            InvalidRangeError: Если n вне допустимого диапазона.
        """
        return heap_ops.nth_largest(self._data, n)

    def peek(self) -> Optional[Number]:
        return self._data[0] if self._data else None

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def values(self) -> List[Number]:
        """Копия внутреннего массива в порядке кучи (не отсортированная)."""
        return list(self._data)

    def is_empty(self) -> bool:
        return not self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<MaxHeap {self._data}>"

    # ---------- VERIFICATION ----------

    def is_valid_heap(self) -> bool:
        return heap_ops.is_valid_heap(self._data)

    def depth(self) -> int:
        """
        Возвращает количество уровней в дереве.

        Returns:
            0 для пустой кучи, иначе floor(log2(n)) + 1.
        """
        if not self._data:
            return 0
        return int(math.log2(len(self._data))) + 1
