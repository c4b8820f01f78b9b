"""
heap_ops.py — чистые функции бинарной max-кучи поверх обычного списка.

Все функции работают со ссылкой на list и меняют его на месте (кроме
nth_largest и is_valid_heap). Наблюдение за перестановками выполняется
через необязательный колбэк on_swap(i, j), который вызывается на каждом
обмене элементов — так обёртка визуализации узнаёт затронутые индексы
без наследования.
"""

from numbers import Integral
from typing import Callable, List, Optional, Union

Number = Union[int, float]
SwapHook = Optional[Callable[[int, int], None]]


class InvalidRangeError(ValueError):
    """Недопустимый порядковый номер n для запроса n-го наибольшего."""


# ---------- INDEX MATH ----------

def parent(i: int) -> int:
    return (i - 1) // 2


def left(i: int) -> int:
    return 2 * i + 1


def right(i: int) -> int:
    return 2 * i + 2


# ---------- REPAIR PASSES ----------

def _swap(data: List[Number], i: int, j: int, on_swap: SwapHook) -> None:
    if on_swap is not None:
        on_swap(i, j)
    data[i], data[j] = data[j], data[i]


def sift_up(data: List[Number], index: int, on_swap: SwapHook = None) -> None:
    """
    Поднимает элемент вверх, пока он строго больше родителя.

    Args:
        data: Массив кучи.
        index: Индекс поднимаемого элемента.
        on_swap: Колбэк (i, j) для каждой перестановки.
    """
    while index > 0:
        p = parent(index)
        if data[index] > data[p]:
            _swap(data, index, p, on_swap)
            index = p
        else:
            break


def sift_down(data: List[Number], index: int, on_swap: SwapHook = None) -> None:
    """
    Опускает элемент вниз, меняя его с наибольшим из детей.

    Левый ребёнок проверяется первым и сравнение строгое, поэтому при
    равных детях выигрывает левый.

    Args:
        data: Массив кучи.
        index: Индекс опускаемого элемента.
        on_swap: Колбэк (i, j) для каждой перестановки.
    """
    n = len(data)
    while True:
        lo, hi = left(index), right(index)
        largest = index

        if lo < n and data[lo] > data[largest]:
            largest = lo
        if hi < n and data[hi] > data[largest]:
            largest = hi

        if largest == index:
            break

        _swap(data, index, largest, on_swap)
        index = largest


# ---------- OPERATIONS ----------

def push(data: List[Number], value: Number, on_swap: SwapHook = None) -> None:
    data.append(value)
    sift_up(data, len(data) - 1, on_swap)


def pop_max(data: List[Number], on_swap: SwapHook = None) -> Optional[Number]:
    """
    Извлекает корень кучи.

    Returns:
        Максимальный элемент или None, если куча пуста.
    """
    if not data:
        return None
    if len(data) == 1:
        return data.pop()

    root = data[0]
    data[0] = data.pop()
    sift_down(data, 0, on_swap)
    return root


def check_rank(n, size: int) -> None:
    """
    Проверяет порядковый номер n для запроса n-го наибольшего.

    Raises:
        InvalidRangeError: Если n не целое число, n < 1 или n > size.
    """
    if isinstance(n, bool) or not isinstance(n, Integral):
        raise InvalidRangeError(f"Invalid value for n: {n!r} (expected an integer)")
    if n < 1 or n > size:
        raise InvalidRangeError(f"Invalid value for n: {n} (expected 1..{size})")


def nth_largest(data: List[Number], n: int) -> Number:
    """
    Возвращает n-й наибольший элемент, не изменяя исходный массив.

    Работает на копии: n - 1 раз извлекает максимум, затем возвращает
    следующий. Сложность O(n log n).

    Raises:
        InvalidRangeError: Если n вне диапазона [1, len(data)].
    """
    check_rank(n, len(data))

    scratch = list(data)
    for _ in range(n - 1):
        pop_max(scratch)
    return pop_max(scratch)


def is_valid_heap(data: List[Number]) -> bool:
    """Проверяет, что каждый родитель не меньше своих детей."""
    return all(data[parent(i)] >= data[i] for i in range(1, len(data)))
