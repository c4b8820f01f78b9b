# Размеры окна
WIDTH = 1000
HEIGHT = 680

# Цвета (RGB)
BG_COLOR = (30, 30, 40)
NODE_COLOR = (100, 180, 255)
EDGE_COLOR = (90, 90, 110)
TEXT_COLOR = (255, 255, 255)

# Цвета UI
PANEL_BG = (45, 45, 60)
BTN_BG = (70, 90, 120)
BTN_BG_HOVER = (90, 120, 160)
BTN_BG_DISABLED = (60, 60, 80)
INPUT_BG = (35, 35, 50)
ACCENT_OK = (120, 255, 120)
ACCENT_BAD = (255, 120, 120)

# Подсветка узлов
IMPACTED_COLOR = (255, 200, 80)
REMOVED_COLOR = (255, 120, 120)
QUERY_COLOR = (140, 220, 255)

# Геометрия
PANEL_H = 96       # высота верхней панели
NODE_RADIUS = 18
LEVEL_H = 70       # расстояние между уровнями дерева

# Поиск k-го наибольшего: пауза между шагами
STEP_DELAY_MS = 500

# Глубина истории undo/redo (None — без ограничения)
HISTORY_LIMIT = 200

# Диапазон случайных значений и ограничение ручного ввода
RANDOM_MIN = 0
RANDOM_MAX = 99
VALUE_LIMIT = 10_000

# Частота кадров
FPS = 60

# Уровень логирования
LOG_LEVEL = "INFO"
