import logging
import os
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from fmtlens.formatting import default_registry
from fmtlens.services.preview_pipeline import PreviewPipeline
from fmtlens.settings_manager import SettingsManager
from fmtlens.settings_store import SettingsStoreError
from fmtlens.ui.lens_window import LensWindow

LOG_LEVEL_ENV = "PYFMTLENS_LOG_LEVEL"


def _configure_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper() or "WARNING"
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _startup_file(argv: list[str]) -> Path | None:
    for arg in argv:
        candidate = Path(arg).expanduser()
        if candidate.is_file():
            return candidate
    return None


if __name__ == "__main__":
    _configure_logging()
    cli_args = sys.argv[1:]

    manager = SettingsManager()
    try:
        manager.load_all()
    except SettingsStoreError as exc:
        logging.getLogger(__name__).error("%s", exc)

    app = QApplication([sys.argv[0]])
    app.setStyle("Fusion")
    app.setApplicationName(LensWindow.APP_NAME)

    pipeline = PreviewPipeline(default_registry(), interpreter=str(manager.get("format.interpreter", "") or ""))
    window = LensWindow(manager, pipeline)
    startup_file = _startup_file(cli_args)
    if startup_file is not None:
        window.load_file(startup_file)
    if manager.load_error:
        window.statusBar().showMessage(f"Settings file could not be read: {manager.load_error}")
    window.show()
    sys.exit(app.exec())
