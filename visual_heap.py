"""
visual_heap.py — обёртка над MaxHeap для визуализации.

Добавляет к куче:
    - множество индексов, затронутых последней мутацией;
    - историю undo/redo на полных снапшотах состояния;
    - пошаговый поиск n-го наибольшего с текстовым сопровождением.

Куча не наследуется, а хранится внутри: перестановки наблюдаются через
колбэк on_swap, который обёртка передаёт в операции ядра.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterator, List, Optional, Set, Tuple

import heap_ops
from heap import MaxHeap
from heap_ops import Number
from history import History, Snapshot
from settings import HISTORY_LIMIT, STEP_DELAY_MS

log = logging.getLogger(__name__)

StepCallback = Optional[Callable[[str], None]]


@dataclass
class HeapState:
    """Состояние для отрисовки. Каждый вызов get_current_state() отдаёт новые копии."""

    values: List[Number] = field(default_factory=list)
    impacted_nodes: Set[int] = field(default_factory=set)
    new_value: Optional[Number] = None


@dataclass(frozen=True)
class StepEvent:
    """
    Один шаг поиска n-го наибольшего.

    Attributes:
        kind: "remove" — промежуточное извлечение, "found" — результат,
              "done" — итоговое сообщение.
        rank: Номер извлечения (1 — максимум).
        value: Извлечённое значение.
        message: Текст для пользователя.
        values: Массив временной кучи после шага.
        impacted: Индексы, затронутые спуском на этом шаге.
    """

    kind: str
    rank: int
    value: Number
    message: str
    values: Tuple[Number, ...] = ()
    impacted: FrozenSet[int] = frozenset()


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


class VisualMaxHeap:
    """
    Max-куча с отслеживанием затронутых узлов и историей изменений.

    Args:
        step_delay: Пауза (в секундах) между шагами find_nth_largest().
        history_limit: Глубина undo/redo; None — без ограничения.
    """

    def __init__(
        self,
        step_delay: float = STEP_DELAY_MS / 1000.0,
        history_limit: Optional[int] = HISTORY_LIMIT,
    ):
        self.step_delay = max(0.0, step_delay)
        self._heap = MaxHeap()
        self._history = History(history_limit)
        self._impacted: Set[int] = set()
        self._new_value: Optional[Number] = None
        self._on_step: StepCallback = None

    # ---------- MUTATIONS ----------

    def insert(self, value: Number) -> None:
        """
        Вставляет значение, запоминая предыдущее состояние для undo.

        Затронутыми считаются оба индекса каждой перестановки при подъёме,
        а не только итоговая позиция.
        """
        self._history.record(self._snapshot())
        self._impacted.clear()
        self._new_value = value
        self._heap.insert(value, on_swap=self._track_swap)
        log.debug("insert %r impacted=%s", value, sorted(self._impacted))

    def extract_max(self) -> Optional[Number]:
        """
        Извлекает максимум, отслеживая перестановки при спуске.

        Returns:
            Извлечённое значение или None для пустой кучи. Пустое извлечение
            ничего не меняет и в историю не попадает.
        """
        if self._heap.is_empty():
            return None

        self._history.record(self._snapshot())
        self._impacted.clear()
        root =self._heap.extract_max(on_swap=self._track_swap)
        log.debug("extract_max %r impacted=%s", root, sorted(self._impacted))
        return root

    def reset(self) -> None:
        """Заменяет кучу пустой и очищает историю и подсветку."""
        self._heap = MaxHeap()
        self._history.clear()
        self._impacted = set()
        self._new_value = None
        log.debug("reset")

    # ---------- HISTORY ----------

    def undo(self) -> None:
        snapshot = self._history.undo(self._snapshot())
        if snapshot is None:
            return
        self._restore(snapshot)
        log.debug("undo -> %s", list(snapshot.values))

    def redo(self) -> None:
        snapshot = self._history.redo(self._snapshot())
        if snapshot is None:
            return
        self._restore(snapshot)
        log.debug("redo -> %s", list(snapshot.values))

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    # ---------- QUERIES ----------

    def set_step_callback(self, callback: StepCallback) -> None:
        """
        Устанавливает или снимает приёмник пошаговых сообщений.

        Args:
            callback: Функция (message: str) -> None или None, чтобы отключить.
        """
        self._on_step = callback

    def iter_nth_largest_steps(self, n: int) -> Iterator[StepEvent]:
        """
        Пошаговый поиск n-го наибольшего в виде ленивой последовательности.

        Номер n проверяется сразу, до начала итерации. Шаги выполняются над
        временной кучей из копии текущих значений, поэтому состояние обёртки
        не меняется. Последовательность конечна и проходится один раз.

        Raises:
            InvalidRangeError: Если n вне диапазона [1, size].
        """
        heap_ops.check_rank(n, self._heap.size)
        return self._nth_largest_steps(n, self._heap.values)

    async def find_nth_largest(self, n: int) -> Number:
        """
        Находит n-й наибольший элемент, сопровождая каждый шаг сообщением.

        После каждого промежуточного извлечения выполняется пауза step_delay,
        чтобы интерфейс успел показать шаг. Отмена задачи в момент паузы
        прерывает поиск; состояние кучи и история при этом не меняются.

        Raises:
            InvalidRangeError: Если n вне диапазона [1, size].
        """
        result = None
        for event in self.iter_nth_largest_steps(n):
            self._emit(event.message)
            if event.kind == "remove":
                await asyncio.sleep(self.step_delay)
            elif event.kind == "found":
                result = event.value
        return result

    def get_current_state(self) -> HeapState:
        return HeapState(
            values=self._heap.values,
            impacted_nodes=set(self._impacted),
            new_value=self._new_value,
        )

    @property
    def size(self) -> int:
        return self._heap.size

    @property
    def values(self) -> List[Number]:
        return self._heap.values

    def is_valid_heap(self) -> bool:
        return self._heap.is_valid_heap()

    def __len__(self) -> int:
        return self._heap.size

    def __repr__(self) -> str:
        return f"<VisualMaxHeap {self._heap.values} impacted={sorted(self._impacted)}>"

    # ---------- INTERNALS ----------

    def _track_swap(self, i: int, j: int) -> None:
        self._impacted.add(i)
        self._impacted.add(j)

    def _snapshot(self) -> Snapshot:
        return Snapshot.capture(self._heap.values, self._impacted, self._new_value)

    def _restore(self, snapshot: Snapshot) -> None:
        # Состояние восстанавливается как есть, без повторного выполнения операций
        self._heap = MaxHeap.from_values(snapshot.values)
        self._impacted = set(snapshot.impacted)
        self._new_value = snapshot.new_value

    @staticmethod
    def _nth_largest_steps(n: int, values: List[Number]) -> Iterator[StepEvent]:
        scratch = MaxHeap()
        for value in values:
            scratch.insert(value)

        operations = 0
        value = None
        for rank in range(1, n + 1):
            touched: Set[int] = set()

            def on_swap(i: int, j: int, touched=touched) -> None:
                touched.update((i, j))

            value = scratch.extract_max(on_swap=on_swap)
            operations += 1

            if rank < n:
                kind = "remove"
                message = f"Removing {ordinal(rank)} largest element: {value}"
            else:
                kind = "found"
                message = f"Found {ordinal(n)} largest element: {value}"

            log.debug("step %d/%d: %s", rank, n, message)
            yield StepEvent(kind, rank, value, message, tuple(scratch.values), frozenset(touched))

        yield StepEvent(
            "done", n, value,
            f"Completed in {operations} operations",
            tuple(scratch.values),
        )

    def _emit(self, message: str) -> None:
        """
        Безопасно передаёт сообщение приёмнику шагов.

        Примечания:
            - Исключения приёмника подавляются и логируются на уровне debug.
        """
        callback = self._on_step
        if callback is None:
            return
        try:
            callback(message)
        except Exception as e:
            log.debug("Step callback failed for message %r: %s", message, e, exc_info=True)
