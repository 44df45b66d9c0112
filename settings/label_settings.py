from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from PyQt5.QtGui import QColor, QFont

from active_label.active_types import ActiveType
from settings.theme_manager import ThemeManager

logger = logging.getLogger(__name__)

SECTION_KEY = "active_label"

_BUILTIN_COLOR_FIELDS = (
    "mention_color",
    "mention_selected_color",
    "hashtag_color",
    "hashtag_selected_color",
    "url_color",
    "url_selected_color",
)


class SettingsError(ValueError):
    """Raised for settings that cannot be applied to a label."""


def _default_enabled_types() -> List[str]:
    return [ActiveType.MENTION.key, ActiveType.HASHTAG.key, ActiveType.URL.key]


@dataclass
class LabelSettings:
    """Persisted label configuration.

    Colours are stored as anything ``QColor`` understands (``"#1da1f2"``,
    ``"red"``); ``None`` leaves the label's current colour alone. Custom
    categories are keyed by their id, without the ``custom:`` prefix.
    """

    enabled_types: List[str] = field(default_factory=_default_enabled_types)
    mention_color: Optional[str] = None
    mention_selected_color: Optional[str] = None
    hashtag_color: Optional[str] = None
    hashtag_selected_color: Optional[str] = None
    url_color: Optional[str] = None
    url_selected_color: Optional[str] = None
    custom_colors: Dict[str, str] = field(default_factory=dict)
    custom_selected_colors: Dict[str, str] = field(default_factory=dict)
    custom_patterns: Dict[str, str] = field(default_factory=dict)
    url_maximum_length: Optional[int] = None
    line_spacing: float = 0.0
    minimum_line_height: float = 0.0
    fuzzy_height_matching: bool = False
    highlight_font_family: Optional[str] = None
    highlight_font_size: Optional[float] = None
    theme: Optional[str] = None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """Raise :class:`SettingsError` (or ``re.error`` for a bad pattern)."""

        self.active_types()
        if self.url_maximum_length is not None:
            if isinstance(self.url_maximum_length, bool) or not isinstance(self.url_maximum_length, int):
                raise SettingsError(f"url_maximum_length must be an integer, got {self.url_maximum_length!r}")
            if self.url_maximum_length < 1:
                raise SettingsError("url_maximum_length must be positive")
        for name in _BUILTIN_COLOR_FIELDS:
            self._check_color(name, getattr(self, name))
        for custom_id, color in self.custom_colors.items():
            self._check_color(f"custom_colors[{custom_id}]", color)
        for custom_id, color in self.custom_selected_colors.items():
            self._check_color(f"custom_selected_colors[{custom_id}]", color)
        for custom_id, pattern in self.custom_patterns.items():
            if not custom_id:
                raise SettingsError("custom pattern ids cannot be empty")
            re.compile(pattern)
        if self.line_spacing < 0 or self.minimum_line_height < 0:
            raise SettingsError("line_spacing and minimum_line_height cannot be negative")
        if self.theme is not None and self.theme not in ThemeManager.list_themes():
            raise SettingsError(f"Unknown theme: {self.theme}")

    @staticmethod
    def _check_color(name: str, value: Optional[str]) -> None:
        if value is None:
            return
        if not isinstance(value, str) or not QColor.isValidColor(value):
            raise SettingsError(f"{name}: not a colour: {value!r}")

    def active_types(self) -> List[ActiveType]:
        types = []
        for key in self.enabled_types:
            try:
                types.append(ActiveType.from_key(key))
            except ValueError as exc:
                raise SettingsError(str(exc)) from exc
        return types

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LabelSettings":
        if not isinstance(data, dict):
            raise SettingsError("settings must be a JSON object")
        section = data.get(SECTION_KEY, data)
        if not isinstance(section, dict):
            raise SettingsError(f"'{SECTION_KEY}' must be a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(section) - known)
        if unknown:
            logger.warning("Ignoring unknown label settings: %s", ", ".join(unknown))
        settings = cls(**{k: v for k, v in section.items() if k in known})
        settings.validate()
        return settings

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def load(cls, path: str) -> "LabelSettings":
        if not os.path.exists(path):
            logger.debug("No label settings at %s; using defaults", path)
            return cls()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read label settings %s: %s", path, exc)
            raise SettingsError(f"unreadable settings file: {path}") from exc
        return cls.from_dict(data)

    def save(self, path: str) -> None:
        self.validate()
        dirpath = os.path.dirname(path)
        if dirpath and not os.path.exists(dirpath):
            os.makedirs(dirpath, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({SECTION_KEY: self.to_dict()}, f, indent=2)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    def apply_to(self, label) -> None:
        """Push these settings onto ``label`` as a single update."""

        self.validate()
        with label.customize():
            if self.theme:
                ThemeManager.apply_to_label(label, self.theme)
            for custom_id, pattern in self.custom_patterns.items():
                label.add_custom_type(ActiveType.custom(custom_id), pattern, enable=False)
            label.set_enabled_types(self.active_types())

            for name in _BUILTIN_COLOR_FIELDS:
                value = getattr(self, name)
                if value is not None:
                    getattr(label, f"set_{name}")(QColor(value))
            for custom_id, color in self.custom_colors.items():
                label.set_custom_color(ActiveType.custom(custom_id), QColor(color))
            for custom_id, color in self.custom_selected_colors.items():
                label.set_custom_selected_color(ActiveType.custom(custom_id), QColor(color))

            label.set_url_maximum_length(self.url_maximum_length)
            label.set_line_spacing(self.line_spacing)
            label.set_minimum_line_height(self.minimum_line_height)
            label.set_fuzzy_height_matching(self.fuzzy_height_matching)
            label.set_highlight_font(self._highlight_font(label))

    def _highlight_font(self, label) -> Optional[QFont]:
        if not self.highlight_font_family and not self.highlight_font_size:
            return None
        font = QFont(label.font())
        if self.highlight_font_family:
            font.setFamily(self.highlight_font_family)
        if self.highlight_font_size:
            font.setPointSizeF(float(self.highlight_font_size))
        return font
