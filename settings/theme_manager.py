from __future__ import annotations

import logging
from typing import Dict, Optional

from PyQt5.QtCore import QObject, pyqtSignal
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import QApplication

logger = logging.getLogger(__name__)


class ThemeManager(QObject):
    """
    A simple manager for predefined themes.

    Provides methods to:
      - List available themes.
      - Apply a theme's stylesheet to the entire application.
      - Look up the link colours of a theme and push them onto a label.
    """

    # Signal emitted when theme changes
    themeChanged = pyqtSignal(str)

    _instance = None
    _current_theme = "Standard"

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ThemeManager, cls).__new__(cls)
            cls._instance.__init_signals()
        return cls._instance

    def __init_signals(self):
        # QObject must be initialised exactly once for the shared instance
        super().__init__()

    def __init__(self):
        pass

    THEMES = {
        "Standard": """
            ActiveLabel {
                background-color: #ffffff;
            }
        """,
        "Night Mode": """
            QWidget {
                background-color: #2b2b2b;
                color: #ffffff;
                font-family: Arial, "Helvetica Neue", Verdana;
            }
            QPushButton {
                background-color: #333;
                color: #ffffff;
                border: 2px solid #ffffff;
                padding: 5px;
                font-weight: bold;
            }
            QPushButton:hover {
                background-color: #444;
            }
        """,
        "Solarized Dark": """
            QWidget {
                background-color: #002b36;
                color: #839496;
                font-family: Arial, "Helvetica Neue", Verdana;
            }
            QPushButton {
                background-color: #073642;
                color: #93a1a1;
                border: 1px solid #586e75;
                padding: 5px;
            }
        """,
        "Sepia": """
            QWidget {
                background-color: #f4ecd8;
                color: #5a4630;
                font-family: Georgia, serif;
            }
            QPushButton {
                background-color: #d8c3a5;
                color: #5a4630;
                border: 1px solid #a67c52;
                padding: 5px;
            }
        """,
    }

    # Colours for label text and each built-in category. A theme may leave
    # out the selected colours; they are derived from the background.
    LINK_PALETTES: Dict[str, Dict[str, str]] = {
        "Standard": {
            "background": "#ffffff",
            "text": "#000000",
            "mention": "#0000ff",
            "hashtag": "#0000ff",
            "url": "#0000ff",
        },
        "Night Mode": {
            "background": "#2b2b2b",
            "text": "#ffffff",
            "mention": "#8ab4f8",
            "hashtag": "#81c995",
            "url": "#8ab4f8",
            "url_selected": "#c6dafc",
        },
        "Solarized Dark": {
            "background": "#002b36",
            "text": "#839496",
            "mention": "#268bd2",
            "hashtag": "#859900",
            "url": "#2aa198",
        },
        "Sepia": {
            "background": "#f4ecd8",
            "text": "#5a4630",
            "mention": "#8b4513",
            "hashtag": "#a0522d",
            "url": "#6b4226",
        },
    }

    @classmethod
    def list_themes(cls):
        return list(cls.THEMES.keys())

    @classmethod
    def current_theme(cls) -> str:
        return cls._current_theme

    @classmethod
    def get_stylesheet(cls, theme_name):
        return cls.THEMES.get(theme_name, cls.THEMES["Standard"])

    @classmethod
    def set_current_theme(cls, theme_name: str) -> None:
        if theme_name not in cls.THEMES:
            raise KeyError(f"Unknown theme: {theme_name}")
        cls._current_theme = theme_name
        if cls._instance:
            cls._instance.themeChanged.emit(theme_name)

    @classmethod
    def apply_to_app(cls, theme_name):
        app = QApplication.instance()
        if not app or not hasattr(app, "setStyleSheet"):
            raise RuntimeError(
                "No QApplication instance found. Create one before applying a theme.")
        app.setStyleSheet(cls.get_stylesheet(theme_name))
        cls.set_current_theme(theme_name)

    @classmethod
    def calculate_contrast_ratio(cls, color1, color2):
        """Calculate the contrast ratio between two QColor objects."""
        def luminance(color):
            r, g, b = color.redF(), color.greenF(), color.blueF()
            return 0.2126 * r + 0.7152 * g + 0.0722 * b
        l1 = luminance(color1) + 0.05
        l2 = luminance(color2) + 0.05
        return max(l1, l2) / min(l1, l2)

    @classmethod
    def derive_selected_color(cls, color: QColor, background: QColor) -> QColor:
        """Pick the lighter or darker shade of ``color``, whichever stands out less
        against ``background``, so a pressed link reads as dimmed."""
        lighter = color.lighter(160)
        darker = color.darker(160)
        if cls.calculate_contrast_ratio(lighter, background) <= cls.calculate_contrast_ratio(darker, background):
            return lighter
        return darker

    @classmethod
    def get_link_palette(cls, theme_name: Optional[str] = None) -> Dict[str, QColor]:
        """Resolved colours for ``theme_name`` (current theme by default).

        Always contains ``background``, ``text`` and, for each built-in
        category, both ``<category>`` and ``<category>_selected``.
        """
        name = theme_name or cls._current_theme
        raw = cls.LINK_PALETTES.get(name)
        if raw is None:
            logger.warning("Unknown theme %r; using Standard link colours", name)
            raw = cls.LINK_PALETTES["Standard"]
        background = QColor(raw["background"])
        palette = {"background": background, "text": QColor(raw["text"])}
        for category in ("mention", "hashtag", "url"):
            color = QColor(raw[category])
            palette[category] = color
            selected = raw.get(f"{category}_selected")
            palette[f"{category}_selected"] = (
                QColor(selected) if selected else cls.derive_selected_color(color, background)
            )
        return palette

    @classmethod
    def apply_to_label(cls, label, theme_name: Optional[str] = None) -> None:
        """Restyle ``label`` with the link colours of a theme."""
        palette = cls.get_link_palette(theme_name)
        with label.customize():
            label.set_text_color(palette["text"])
            label.set_mention_color(palette["mention"])
            label.set_mention_selected_color(palette["mention_selected"])
            label.set_hashtag_color(palette["hashtag"])
            label.set_hashtag_selected_color(palette["hashtag_selected"])
            label.set_url_color(palette["url"])
            label.set_url_selected_color(palette["url_selected"])
