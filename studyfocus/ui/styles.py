"""
Dark mode stylesheet for Study Focus.
Catppuccin Mocha-inspired palette.
"""

# Palette, also used by widgets that set inline styles
BASE = "#1e1e2e"
MANTLE = "#181825"
SURFACE0 = "#313244"
SURFACE1 = "#45475a"
SURFACE2 = "#585b70"
TEXT = "#cdd6f4"
SUBTEXT = "#a6adc8"
BLUE = "#89b4fa"
GREEN = "#a6e3a1"
YELLOW = "#f9e2af"
PEACH = "#fab387"
RED = "#f38ba8"
MAUVE = "#cba6f7"

DARK_STYLESHEET = f"""
/* ── Base ────────────────────────────────────────────────────────── */
QWidget {{
    background-color: {BASE};
    color: {TEXT};
    font-family: "Segoe UI", "Inter", sans-serif;
    font-size: 13px;
}}

/* ── Buttons ─────────────────────────────────────────────────────── */
QPushButton {{
    background-color: {SURFACE0};
    color: {TEXT};
    border: 1px solid {SURFACE2};
    border-radius: 8px;
    padding: 6px 14px;
    font-weight: 600;
    min-height: 22px;
}}

QPushButton:hover {{
    background-color: {SURFACE1};
    border-color: {BLUE};
}}

QPushButton:disabled {{
    background-color: {MANTLE};
    color: {SURFACE2};
    border-color: {SURFACE0};
}}

QPushButton#primary {{
    background-color: {BLUE};
    color: {BASE};
    border: none;
}}

QPushButton#danger {{
    background-color: {RED};
    color: {BASE};
    border: none;
}}

QPushButton#start {{
    background-color: {GREEN};
    color: {BASE};
    border: none;
    padding: 2px 10px;
}}

/* ── Inputs ──────────────────────────────────────────────────────── */
QLineEdit, QComboBox {{
    background-color: {SURFACE0};
    color: {TEXT};
    border: 1px solid {SURFACE2};
    border-radius: 6px;
    padding: 5px 9px;
    selection-background-color: {BLUE};
    selection-color: {BASE};
}}

QLineEdit:focus {{
    border-color: {BLUE};
}}

QComboBox QAbstractItemView {{
    background-color: {SURFACE0};
    selection-background-color: {SURFACE1};
}}

/* ── Hierarchy columns ───────────────────────────────────────────── */
QListWidget {{
    background-color: {MANTLE};
    border: 1px solid {SURFACE0};
    border-radius: 8px;
    padding: 4px;
}}

QListWidget::item {{
    padding: 6px;
    border-radius: 4px;
}}

QListWidget::item:selected {{
    background-color: {SURFACE1};
    color: {BLUE};
}}

/* ── Labels ──────────────────────────────────────────────────────── */
QLabel {{
    background: transparent;
}}

QLabel#title {{
    font-size: 20px;
    font-weight: 700;
    color: {BLUE};
}}

QLabel#column_title {{
    font-size: 11px;
    font-weight: 600;
    color: {SUBTEXT};
    letter-spacing: 1px;
}}

QLabel#subtitle {{
    font-size: 14px;
    color: {SUBTEXT};
}}

QLabel#timer {{
    font-size: 36px;
    font-weight: 700;
    font-family: "Consolas", "Courier New", monospace;
    color: {YELLOW};
}}

QLabel#countdown {{
    font-size: 13px;
    font-weight: 600;
    color: {MAUVE};
}}

QLabel#focus_banner {{
    background-color: {PEACH};
    color: {BASE};
    font-weight: 600;
    border-radius: 6px;
    padding: 8px;
}}

QLabel#save_status {{
    font-size: 11px;
    color: {RED};
}}

/* ── Tabs ────────────────────────────────────────────────────────── */
QTabWidget::pane {{
    border: 1px solid {SURFACE0};
    border-radius: 8px;
}}

QTabBar::tab {{
    background-color: {MANTLE};
    color: {SUBTEXT};
    padding: 9px 20px;
    margin-right: 2px;
    border-top-left-radius: 8px;
    border-top-right-radius: 8px;
    font-weight: 600;
}}

QTabBar::tab:selected {{
    background-color: {BASE};
    color: {BLUE};
    border-bottom: 2px solid {BLUE};
}}

/* ── Tooltip ─────────────────────────────────────────────────────── */
QToolTip {{
    background-color: {SURFACE0};
    color: {TEXT};
    border: 1px solid {SURFACE2};
    padding: 4px 8px;
}}
"""
