import sys
import logging
import argparse

from PyQt5.QtCore import QUrl
from PyQt5.QtWidgets import QApplication, QComboBox, QLabel, QVBoxLayout, QWidget

from active_label.active_types import ActiveType
from active_label.label_widget import ActiveLabel
from settings.label_settings import LabelSettings, SettingsError
from settings.theme_manager import ThemeManager
from util.cursor_manager import install_cursor_manager

logger = logging.getLogger("active_label.demo")

DEFAULT_TEXT = (
    "Hello @jack, check #ios at http://example.com/very/long/path "
    "or mail the team about ticket AL-42 via https://www.example.org/support?topic=labels."
)


def exception_hook(exctype, value, traceback):
    logging.error("Unhandled exception", exc_info=(exctype, value, traceback))
    sys.__excepthook__(exctype, value, traceback)
sys.excepthook = exception_hook


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show an interactive ActiveLabel.")
    parser.add_argument("text", nargs="?", default=DEFAULT_TEXT, help="text to display")
    parser.add_argument("--settings", help="JSON settings file for the label")
    parser.add_argument("--theme", choices=ThemeManager.list_themes(), help="theme to start with")
    parser.add_argument("--url-max-length", type=int, help="shorten URLs to this many characters")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    return parser


class DemoWindow(QWidget):
    """A label plus a line reporting the last tapped element."""

    def __init__(self, text: str, settings: LabelSettings):
        super().__init__()
        self.setWindowTitle("ActiveLabel")

        self.label = ActiveLabel(parent=self)
        self.status = QLabel("Tap a mention, hashtag or link.", self)
        self.theme_box = QComboBox(self)
        self.theme_box.addItems(ThemeManager.list_themes())
        self.theme_box.setCurrentText(settings.theme or ThemeManager.current_theme())
        self.theme_box.currentTextChanged.connect(ThemeManager.apply_to_app)
        ThemeManager().themeChanged.connect(self.on_theme_changed)

        layout = QVBoxLayout(self)
        layout.addWidget(self.theme_box)
        layout.addWidget(self.label, 1)
        layout.addWidget(self.status)

        ticket = ActiveType.custom("ticket")
        with self.label.customize():
            settings.apply_to(self.label)
            self.label.add_custom_type(ticket, r"\bAL-\d+\b")
            self.label.setText(text)

        self.label.handle_mention_tap(lambda handle, _range: self.report("mention", handle))
        self.label.handle_hashtag_tap(lambda tag, _range: self.report("hashtag", tag))
        self.label.handle_url_tap(self.on_url_tapped)
        self.label.handle_custom_tap(ticket, lambda text, _range: self.report("ticket", text))
        self.label.set_delegate(lambda payload, active_type, _range: self.report(str(active_type), payload))

    def report(self, kind: str, payload: str) -> None:
        logger.info("Tapped %s: %s", kind, payload)
        self.status.setText(f"{kind}: {payload}")

    def on_url_tapped(self, url: QUrl, _range) -> None:
        self.report("url", url.toString())

    def on_theme_changed(self, theme_name: str) -> None:
        ThemeManager.apply_to_label(self.label, theme_name)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = LabelSettings.load(args.settings) if args.settings else LabelSettings()
        if args.theme:
            settings.theme = args.theme
        if args.url_max_length is not None:
            settings.url_maximum_length = args.url_max_length
        settings.validate()
    except SettingsError as exc:
        logger.error("Invalid settings: %s", exc)
        return 2

    app = QApplication(sys.argv[:1])
    install_cursor_manager(app)
    ThemeManager.apply_to_app(settings.theme or ThemeManager.current_theme())

    window = DemoWindow(args.text, settings)
    window.resize(420, 220)
    window.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
