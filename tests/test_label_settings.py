import json
import re
import unittest

import pytest
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import QApplication

from active_label.active_types import ActiveType, Custom
from active_label.label_widget import ActiveLabel
from settings.label_settings import LabelSettings, SettingsError


def test_defaults():
    settings = LabelSettings()
    assert settings.active_types() == [ActiveType.MENTION, ActiveType.HASHTAG, ActiveType.URL]
    assert settings.url_maximum_length is None


def test_from_dict_accepts_nested_or_flat():
    nested = LabelSettings.from_dict({"active_label": {"url_maximum_length": 20}})
    flat = LabelSettings.from_dict({"url_maximum_length": 20})
    assert nested == flat
    assert nested.url_maximum_length == 20


def test_unknown_keys_are_ignored():
    settings = LabelSettings.from_dict({"line_spacing": 2, "sparkles": True})
    assert settings.line_spacing == 2


@pytest.mark.parametrize(
    "data",
    [
        {"enabled_types": ["mention", "emoji"]},
        {"url_maximum_length": 0},
        {"url_maximum_length": "20"},
        {"mention_color": "not-a-colour"},
        {"custom_colors": {"ticket": "#zzzzzz"}},
        {"theme": "No Such Theme"},
        {"line_spacing": -1},
    ],
)
def test_invalid_settings(data):
    with pytest.raises(SettingsError):
        LabelSettings.from_dict(data)


def test_invalid_custom_pattern():
    with pytest.raises(re.error):
        LabelSettings.from_dict({"custom_patterns": {"ticket": "(AL"}})


def test_load_missing_file_returns_defaults(tmp_path):
    assert LabelSettings.load(str(tmp_path / "missing.json")) == LabelSettings()


def test_save_and_load(tmp_path):
    path = tmp_path / "conf" / "label.json"
    settings = LabelSettings(
        enabled_types=["mention", "custom:ticket"],
        mention_color="#ff0000",
        custom_patterns={"ticket": r"\bAL-\d+\b"},
        url_maximum_length=24,
        theme="Sepia",
    )
    settings.save(str(path))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["active_label"]["url_maximum_length"] == 24
    assert LabelSettings.load(str(path)) == settings


def test_corrupt_file(tmp_path):
    path = tmp_path / "label.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsError):
        LabelSettings.load(str(path))


class ApplySettingsTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._app = QApplication.instance() or QApplication([])

    def test_apply_to_label(self):
        label = ActiveLabel()
        label.setText("@jack fixed AL-42 at http://example.com/very/long/path")
        rebuilds = []
        label.element_index.changed.connect(lambda: rebuilds.append(True))

        settings = LabelSettings(
            enabled_types=["mention", "url", "custom:ticket"],
            mention_color="#ff0000",
            custom_colors={"ticket": "#00ff00"},
            custom_patterns={"ticket": r"\bAL-\d+\b"},
            url_maximum_length=20,
            fuzzy_height_matching=True,
            highlight_font_size=18,
        )
        settings.apply_to(label)

        ticket = ActiveType.custom("ticket")
        self.assertEqual(rebuilds, [True])
        self.assertEqual(label.element_index.types(), [ActiveType.URL, ActiveType.MENTION, ticket])
        self.assertEqual(label.element_index.spans(ticket)[0].element, Custom("AL-42"))
        self.assertLessEqual(len(label.element_index.spans(ActiveType.URL)[0].element.display_text), 20)
        self.assertEqual(label.link_style.color(ActiveType.MENTION), QColor("#ff0000"))
        self.assertEqual(label.link_style.color(ticket), QColor("#00ff00"))
        self.assertTrue(label.fuzzy_height_matching())
        self.assertEqual(label.link_style.highlight_font.pointSizeF(), 18.0)
        label.deleteLater()

    def test_theme_colours_apply_before_explicit_ones(self):
        label = ActiveLabel("#ios @jack")
        LabelSettings(theme="Night Mode", hashtag_color="#123456").apply_to(label)
        self.assertEqual(label.link_style.color(ActiveType.HASHTAG), QColor("#123456"))
        self.assertEqual(label.link_style.color(ActiveType.MENTION), QColor("#8ab4f8"))
        label.deleteLater()


if __name__ == "__main__":
    unittest.main()
