import logging
import random
import time
from dataclasses import dataclass
from typing import List, Tuple

import pygame
from heap_ops import InvalidRangeError
from settings import *
from visual_heap import ordinal

log = logging.getLogger(__name__)


@dataclass
class Button:
    rect: pygame.Rect
    label: str
    action: str

    def __getitem__(self, key):
        return getattr(self, key)


def layout_tree(count: int, width: int, top: int, level_height: int) -> List[Tuple[int, int]]:
    """
    Вычисляет центры узлов дерева кучи в порядке массива.

    Каждый уровень делится на 2^level равных слотов, узел ставится в центр
    своего слота, поэтому дети всегда лежат под родителем.

    Args:
        count: Количество узлов.
        width: Ширина области отрисовки.
        top: Y-координата корня.
        level_height: Расстояние между уровнями.

    Returns:
        Список координат (x, y) для индексов 0..count-1.
    """
    positions = []
    for i in range(count):
        level = (i + 1).bit_length() - 1
        slots = 1 << level
        pos = i - (slots - 1)
        x = int(width * (pos + 0.5) / slots)
        y = top + level * level_height
        positions.append((x, y))
    return positions


class UI:
    def __init__(self, screen, heap):
        self.screen = screen
        self.heap = heap
        self.font = pygame.font.SysFont("consolas", 20)
        self.small = pygame.font.SysFont("consolas", 16)

        self.toolbar_surface = pygame.Surface((WIDTH, PANEL_H), pygame.SRCALPHA)
        self.toolbar_needs_redraw = True

        self.buttons = []
        self._hover_btn = None
        self._build_buttons()

        # поля ввода: значение для вставки и k для поиска
        self.value_rect = pygame.Rect(20, 56, 140, 28)
        self.insert_btn_rect = pygame.Rect(self.value_rect.right + 8, 56, 90, 28)
        self.k_rect = pygame.Rect(self.insert_btn_rect.right + 30, 56, 80, 28)
        self.active_input = None
        self.value_text = ""
        self.k_text = ""

        # пошаговый поиск k-го наибольшего
        self.query_steps = None
        self.query_event = None
        self.query_removed = []
        self.next_step_at = 0.0
        self.narration = []

        self.temp_message = None
        self.message_end_time = 0

    def _build_buttons(self):
        """Раскладывает кнопки тулбара в одну строку слева направо."""
        labels = [
            ("Insert Rand", "insert_rand"),
            ("Extract Max", "extract"),
            ("Undo", "undo"),
            ("Redo", "redo"),
            ("K-th Largest", "kth"),
            ("Reset", "reset"),
        ]

        x, y = 20, 12
        for label, action in labels:
            text_w, text_h = self.font.size(label)
            rect = pygame.Rect(x, y, text_w + 24, text_h + 12)
            self.buttons.append(Button(rect, label, action))
            x += rect.width + 10

        self.toolbar_needs_redraw = True

    # ---------- EVENTS ----------

    def handle_event(self, event):
        if event.type == pygame.MOUSEMOTION:
            new_hover = None
            for btn in self.buttons:
                if btn.rect.collidepoint(event.pos) and self._is_enabled(btn):
                    new_hover = btn
                    break
            if new_hover is not self._hover_btn:
                self._hover_btn = new_hover
                self.toolbar_needs_redraw = True

        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.toolbar_needs_redraw = True

            if self.insert_btn_rect.collidepoint(event.pos):
                if self.value_text:
                    self._insert_from_input()
                return

            if self.value_rect.collidepoint(event.pos):
                self.active_input = "value"
            elif self.k_rect.collidepoint(event.pos):
                self.active_input = "k"
            else:
                self.active_input = None

            for btn in self.buttons:
                if btn.rect.collidepoint(event.pos) and self._is_enabled(btn):
                    self._run_action(btn.action)
                    return

        elif event.type == pygame.KEYDOWN:
            if self.active_input:
                self._handle_text_input(event)
            else:
                self._handle_shortcuts(event)

    def _handle_shortcuts(self, event):
        keymap = {
            pygame.K_i: "insert_rand",
            pygame.K_x: "extract",
            pygame.K_u: "undo",
            pygame.K_y: "redo",
            pygame.K_k: "kth",
            pygame.K_r: "reset",
        }
        action = keymap.get(event.key)
        if action and self._is_enabled(action):
            self._run_action(action)
            self.toolbar_needs_redraw = True

    def _handle_text_input(self, event):
        text = self.value_text if self.active_input == "value" else self.k_text

        if event.key == pygame.K_RETURN:
            if self.active_input == "value":
                self._insert_from_input()
            elif self._is_enabled("kth"):
                self._run_action("kth")
            return
        elif event.key == pygame.K_BACKSPACE:
            text = text[:-1]
        elif event.key == pygame.K_ESCAPE:
            self.active_input = None
        else:
            ch = event.unicode
            allow_minus = self.active_input == "value" and not text
            if (ch.isdigit() or (ch == "-" and allow_minus)) and len(text) < 6:
                text += ch

        if self.active_input == "value":
            self.value_text = text
        elif self.active_input == "k":
            self.k_text = text
        self.toolbar_needs_redraw = True

    def _run_action(self, action: str):
        """Выполняет действие тулбара; ошибки показываются временным сообщением."""
        heap = self.heap
        try:
            if action == "insert_rand":
                heap.insert(random.randint(RANDOM_MIN, RANDOM_MAX))

            elif action == "extract":
                value = heap.extract_max()
                if value is None:
                    self._show_temp_message("Heap is empty")
                else:
                    self._show_temp_message(f"Extracted max: {value}")

            elif action == "undo":
                heap.undo()

            elif action == "redo":
                heap.redo()

            elif action == "kth":
                self._start_query()

            elif action == "reset":
                heap.reset()
                self._stop_query()
                self.narration = []

            else:
                log.warning("Unknown toolbar action %r", action)

        except InvalidRangeError as e:
            self._show_temp_message(str(e))
        except Exception as e:
            log.exception("Action %r failed", action)
            self._show_temp_message(f"{action} failed: {e}")

        self.toolbar_needs_redraw = True

    def _insert_from_input(self):
        if self.query_steps is not None:
            # введённое значение сохраняется до окончания поиска
            self._show_temp_message("Busy: k-th query running")
            self.toolbar_needs_redraw = True
            return

        try:
            v = int(self.value_text)
            v = max(-VALUE_LIMIT, min(VALUE_LIMIT, v))
            self.heap.insert(v)
        except ValueError:
            self._show_temp_message(f"Not a number: {self.value_text!r}")
        self.value_text = ""
        self.active_input = None
        self.toolbar_needs_redraw = True

    def _is_enabled(self, btn) -> bool:
        action = btn if isinstance(btn, str) else btn["action"]
        if self.query_steps is not None:
            # во время пошагового поиска кучу менять нельзя
            return action == "reset"
        if action == "extract":
            return self.heap.size > 0
        if action == "undo":
            return self.heap.can_undo()
        if action == "redo":
            return self.heap.can_redo()
        if action == "kth":
            return self.heap.size > 0
        return True

    # ---------- K-TH LARGEST ----------

    def _start_query(self):
        try:
            k = int(self.k_text) if self.k_text else 1
        except ValueError:
            raise InvalidRangeError(f"Invalid value for n: {self.k_text!r}") from None

        # проверка диапазона выполняется сразу, до первого шага
        self.query_steps = self.heap.iter_nth_largest_steps(k)
        self.query_event = None
        self.query_removed = []
        self.narration = [f"Searching for the {ordinal(k)} largest element"]
        self.next_step_at = time.perf_counter() + STEP_DELAY_MS / 1000.0
        self.active_input = None

    def _stop_query(self):
        self.query_steps = None
        self.query_event = None
        self.query_removed = []
        self.toolbar_needs_redraw = True

    def _advance_query(self):
        if self.query_steps is None:
            return

        now = time.perf_counter()
        if now < self.next_step_at:
            return

        event = next(self.query_steps, None)
        if event is None:
            self._stop_query()
            return

        self.narration.append(event.message)
        self.narration = self.narration[-5:]
        if event.kind == "remove":
            self.query_removed.append(event.value)
            self.query_event = event
        elif event.kind == "found":
            self.query_event = event
            self._show_temp_message(event.message)
        self.next_step_at = now + STEP_DELAY_MS / 1000.0

    def _show_temp_message(self, message: str, duration: float = 3.0):
        self.temp_message = message
        self.message_end_time = time.perf_counter() + duration

    # ---------- DRAWING ----------

    def draw(self):
        self._advance_query()

        if self.toolbar_needs_redraw:
            self._redraw_toolbar()

        self._draw_tree()
        self.screen.blit(self.toolbar_surface, (0, 0))

        for fn in (self._draw_narration, self._draw_info_text, self._draw_temp_message):
            try:
                fn()
            except Exception as draw_err:
                # один сломанный оверлей не должен ронять весь кадр
                log.debug("%s failed: %s", fn.__name__, draw_err, exc_info=True)

    def _redraw_toolbar(self):
        surf = self.toolbar_surface
        surf.fill(PANEL_BG)

        for btn in self.buttons:
            rect = btn["rect"]
            if not self._is_enabled(btn):
                bg = BTN_BG_DISABLED
            elif self._hover_btn is btn:
                bg = BTN_BG_HOVER
            else:
                bg = BTN_BG

            pygame.draw.rect(surf, bg, rect, border_radius=6)
            label_surf = self.font.render(btn["label"], True, TEXT_COLOR)
            text_x = rect.x + (rect.width - label_surf.get_width()) // 2
            text_y = rect.y + (rect.height - label_surf.get_height()) // 2
            surf.blit(label_surf, (text_x, text_y))

        self._draw_input(surf, self.value_rect, self.value_text, "Type number…",
                         self.active_input == "value")
        self._draw_input(surf, self.k_rect, self.k_text, "k = 1",
                         self.active_input == "k")

        can_insert = bool(self.value_text) and self.query_steps is None
        pygame.draw.rect(surf, BTN_BG if can_insert else BTN_BG_DISABLED,
                         self.insert_btn_rect, border_radius=6)
        label = self.font.render("Insert", True, TEXT_COLOR)
        label_x = self.insert_btn_rect.x + (self.insert_btn_rect.width - label.get_width()) // 2
        label_y = self.insert_btn_rect.y + (self.insert_btn_rect.height - label.get_height()) // 2
        surf.blit(label, (label_x, label_y))

        k_label = self.small.render("k:", True, TEXT_COLOR)
        surf.blit(k_label, (self.k_rect.x - k_label.get_width() - 6,
                            self.k_rect.y + (self.k_rect.height - k_label.get_height()) // 2))

        self.toolbar_needs_redraw = False

    def _draw_input(self, surf, rect, text, placeholder, active):
        pygame.draw.rect(surf, (160, 160, 160) if active else INPUT_BG, rect, border_radius=6)
        color = (200, 200, 200) if text else (130, 130, 150)
        txt = self.small.render(text or placeholder, True, color)
        surf.blit(txt, (rect.x + 8, rect.y + (rect.height - txt.get_height()) // 2))

    def _draw_tree(self):
        if self.query_event is not None:
            values = list(self.query_event.values)
            highlighted = set(self.query_event.impacted)
            highlight_color = QUERY_COLOR
        else:
            state = self.heap.get_current_state()
            values = state.values
            highlighted = state.impacted_nodes
            highlight_color = IMPACTED_COLOR

        if not values:
            msg = self.font.render("Heap is empty. Use Insert or type a number ↑", True, (180, 180, 200))
            self.screen.blit(msg, (WIDTH // 2 - msg.get_width() // 2, HEIGHT // 2 - msg.get_height() // 2))
            return

        positions = layout_tree(len(values), WIDTH, PANEL_H + 40, LEVEL_H)

        for i in range(1, len(values)):
            pygame.draw.line(self.screen, EDGE_COLOR, positions[(i - 1) // 2], positions[i], 2)

        for i, (val, pos) in enumerate(zip(values, positions)):
            color = highlight_color if i in highlighted else NODE_COLOR
            pygame.draw.circle(self.screen, color, pos, NODE_RADIUS)
            label = self.small.render(str(val), True, BG_COLOR)
            self.screen.blit(label, (pos[0] - label.get_width() // 2, pos[1] - label.get_height() // 2))

        if self.query_removed:
            removed = ", ".join(str(v) for v in self.query_removed)
            text = self.small.render(f"Removed: {removed}", True, REMOVED_COLOR)
            self.screen.blit(text, (20, PANEL_H + 8))

    def _draw_narration(self):
        y = HEIGHT - 190
        for line in self.narration:
            text = self.small.render(line, True, (220, 220, 100))
            self.screen.blit(text, (WIDTH - text.get_width() - 20, y))
            y += 22

    def _draw_temp_message(self):
        if self.temp_message and time.perf_counter() < self.message_end_time:
            lines = self.temp_message.split('\n')
            y = HEIGHT - 150

            max_width = max(self.font.size(line)[0] for line in lines)
            bg_rect = pygame.Rect(20, y - 5, max_width + 20, len(lines) * 25 + 10)
            pygame.draw.rect(self.screen, (40, 40, 60), bg_rect, border_radius=5)
            pygame.draw.rect(self.screen, (100, 100, 150), bg_rect, 2, border_radius=5)

            for line in lines:
                text = self.font.render(line, True, (220, 220, 100))
                self.screen.blit(text, (30, y))
                y += 25

    def _draw_info_text(self):
        state = self.heap.get_current_state()
        info_lines = [
            "[I] InsertRand  [X] Extract  [U] Undo  [Y] Redo  [K] K-th  [R] Reset",
            f"Size: {len(state.values)}   Last inserted: "
            f"{state.new_value if state.new_value is not None else '-'}",
        ]

        y_pos = HEIGHT - 70
        for line in info_lines:
            info = self.font.render(line, True, TEXT_COLOR)
            self.screen.blit(info, (20, y_pos))
            y_pos += 25

        status_ok = self.heap.is_valid_heap()
        status_text = "HEAP OK" if status_ok else "HEAP BROKEN"
        status = self.font.render(status_text, True, ACCENT_OK if status_ok else ACCENT_BAD)
        self.screen.blit(status, (WIDTH - status.get_width() - 20, HEIGHT - 45))
