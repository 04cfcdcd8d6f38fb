from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from PySide6.QtCore import QUrl
from PySide6.QtWidgets import QApplication
from PySide6.QtQml import QQmlApplicationEngine, QQmlEngine

from kaizen.constants import APP_NAME, APP_ORG
from kaizen.controller import KaizenController
from kaizen.logger import setup_logger

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    setup_logger()

    # Some QtQuick.Controls styles fail to instantiate core controls on minimal
    # desktops; force the lightweight Basic style before QApplication exists.
    os.environ.setdefault("QT_QUICK_CONTROLS_STYLE", "Basic")

    app = QApplication(argv)
    app.setOrganizationName(APP_ORG)
    app.setApplicationName(APP_NAME)

    engine = QQmlApplicationEngine()
    controller = KaizenController()
    controller.setParent(app)
    QQmlEngine.setObjectOwnership(controller, QQmlEngine.ObjectOwnership.CppOwnership)
    engine.rootContext().setContextProperty("KZ", controller)

    qml_path = Path(__file__).resolve().parent / "qml" / "Main.qml"
    engine.load(QUrl.fromLocalFile(str(qml_path)))

    if not engine.rootObjects():
        logger.error("Failed to load %s", qml_path)
        return 1

    code = app.exec()
    controller.close()
    return code


if __name__ == "__main__":
    sys.exit(main())
