"""
main.py — точка входа визуализатора max-кучи и поиска k-го наибольшего.

Модуль настраивает логирование и HiDPI-рендеринг, создаёт VisualMaxHeap
(модель с историей undo/redo) и UI, и запускает основной цикл отрисовки
и обработки событий.
"""

import logging
import os
import sys
import traceback

import pygame
from settings import *
from ui import UI
from visual_heap import VisualMaxHeap


def main():
    """
    Точка входа приложения.

    Основные задачи:
        1. Настроить логирование и SDL для HiDPI.
        2. Инициализировать Pygame и окно.
        3. Создать VisualMaxHeap и UI.
        4. Крутить главный цикл: события, отрисовка, ограничение FPS.

    Исключения:
        Непойманные исключения печатаются в консоль с трассировкой.
    """
    logging.basicConfig(
        level=getattr(logging, str(LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        # --- Retina / HiDPI Fix (macOS + SDL2) ---
        os.environ["SDL_VIDEO_ALLOW_HIGHDPI"] = "1"
        os.environ.pop("SDL_VIDEO_HIGHDPI_DISABLED", None)

        pygame.init()
        print(" Pygame успешно инициализирован.")

        try:
            screen = pygame.display.set_mode((WIDTH, HEIGHT), pygame.DOUBLEBUF | pygame.RESIZABLE)
            pygame.display.set_caption("Kth Largest Element: Max-Heap Visualizer")
        except pygame.error as e:
            print(f" Ошибка при создании окна: {e}")
            sys.exit(1)

        clock = pygame.time.Clock()
        heap = VisualMaxHeap(step_delay=STEP_DELAY_MS / 1000.0, history_limit=HISTORY_LIMIT)
        ui = UI(screen, heap)

        running = True
        consecutive_errors = 0
        MAX_CONSECUTIVE_ERRORS = 5  # после 5 подряд ошибок — аварийный выход

        while running:
            try:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    else:
                        # ошибка в одном событии не убивает весь цикл
                        try:
                            ui.handle_event(event)
                        except Exception as event_error:
                            print(f"\n[WARN] Ошибка при обработке события: {event_error}")
                            traceback.print_exc()

                try:
                    screen.fill(BG_COLOR)
                    ui.draw()
                    pygame.display.flip()
                except pygame.error as pg_err:
                    print(f"\n[ERROR] Ошибка Pygame при отрисовке: {pg_err}")
                    traceback.print_exc()
                    running = False
                    continue
                except Exception as draw_err:
                    print(f"\n[ERROR] Ошибка в отрисовке кадра: {draw_err}")
                    traceback.print_exc()
                    consecutive_errors += 1
                    if consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                        print(f"[FATAL] Слишком много подряд ошибок отрисовки ({consecutive_errors}), выходим.")
                        running = False
                    continue
                else:
                    consecutive_errors = 0

                clock.tick(FPS)

            except KeyboardInterrupt:
                print("\n[INFO] Остановка по Ctrl+C")
                running = False

    except Exception as e:
        print(f"\n Критическая ошибка при запуске: {e}")
        traceback.print_exc()

    finally:
        pygame.quit()
        print(" Приложение завершено.")


if __name__ == "__main__":
    main()
