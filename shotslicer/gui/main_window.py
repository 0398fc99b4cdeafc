from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QMessageBox,
    QStatusBar, QProgressBar
)
from PySide6.QtCore import Slot
from PySide6.QtGui import QAction

from shotslicer import __version__
from shotslicer.gui.slice_tab import SliceTab
from shotslicer.core.settings_manager import SettingsManager


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self):
        super().__init__()
        self.settings = SettingsManager()

        self.init_ui()
        self.restore_geometry()

    def init_ui(self):
        """Initialize the user interface."""
        self.setMinimumSize(1200, 750)
        self.setWindowTitle("Shot Slicer")

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(10, 10, 10, 10)
        main_layout.setSpacing(10)

        self.slice_tab = SliceTab(self.settings)
        self.slice_tab.status_message.connect(self.show_status)
        self.slice_tab.busy_changed.connect(self.on_busy_changed)
        main_layout.addWidget(self.slice_tab)

        # Create status bar
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Ready - Add grid images to begin")

        # Busy indicator (hidden by default)
        self.progress_bar = QProgressBar()
        self.progress_bar.setMaximumWidth(200)
        self.progress_bar.setRange(0, 0)
        self.progress_bar.setVisible(False)
        self.status_bar.addPermanentWidget(self.progress_bar)

        self.create_menus()

    @Slot(str)
    def show_status(self, message: str):
        self.status_bar.showMessage(message, 5000)

    @Slot(bool)
    def on_busy_changed(self, busy: bool):
        self.progress_bar.setVisible(busy)

    def create_menus(self):
        """Create application menus."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("&File")

        add_images_action = QAction("&Add Images...", self)
        add_images_action.setShortcut("Ctrl+O")
        add_images_action.triggered.connect(self.slice_tab.browse_files)
        file_menu.addAction(add_images_action)

        export_action = QAction("&Export Zip...", self)
        export_action.setShortcut("Ctrl+E")
        export_action.triggered.connect(self.slice_tab.export_zip)
        file_menu.addAction(export_action)

        file_menu.addSeparator()

        exit_action = QAction("E&xit", self)
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        # Settings menu
        settings_menu = menubar.addMenu("&Settings")

        open_after_action = QAction("&Open Folder After Export", self)
        open_after_action.setCheckable(True)
        open_after_action.setChecked(bool(self.settings.get("export/open_after_export")))
        open_after_action.toggled.connect(
            lambda checked: self.settings.set("export/open_after_export", checked)
        )
        settings_menu.addAction(open_after_action)
        self.open_after_action = open_after_action
        settings_menu.addSeparator()

        reset_action = QAction("&Reset to Defaults", self)
        reset_action.triggered.connect(self.reset_settings)
        settings_menu.addAction(reset_action)

        # Help menu
        help_menu = menubar.addMenu("&Help")

        about_action = QAction("&About", self)
        about_action.triggered.connect(self.show_about)
        help_menu.addAction(about_action)

    @Slot()
    def reset_settings(self):
        """Reset all settings to defaults."""
        reply = QMessageBox.question(
            self,
            "Reset Settings",
            "Are you sure you want to reset all settings to defaults?\n\n"
            "Queued tasks will not be removed.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )

        if reply == QMessageBox.StandardButton.Yes:
            self.settings.reset()
            self.open_after_action.setChecked(False)
            self.slice_tab.queue.config = self.settings.get_project_config()
            self.slice_tab.load_settings()

            QMessageBox.information(
                self,
                "Settings Reset",
                "All settings have been reset to defaults."
            )

    @Slot()
    def show_about(self):
        """Show about dialog."""
        QMessageBox.about(
            self,
            "About Shot Slicer",
            f"<h2>Shot Slicer v{__version__}</h2>"
            "<p>Batch slicer for grid and contact-sheet images.</p>"
            "<p><b>Features:</b></p>"
            "<ul>"
            "<li>Automatic row/column detection from seam energy</li>"
            "<li>Aspect ratio snapping to mainstream formats</li>"
            "<li>Uniform, centered fit crops for every shot</li>"
            "<li>Per-task overrides with mismatch warnings</li>"
            "<li>Zip package or folder export of selected shots</li>"
            "</ul>"
            "<p>Built with PySide6 and Python.</p>"
        )

    def restore_geometry(self):
        """Restore window geometry from settings."""
        geometry = self.settings.get("window_geometry")
        if geometry:
            self.restoreGeometry(geometry)

        state = self.settings.get("window_state")
        if state:
            self.restoreState(state)

    def closeEvent(self, event):
        """Save settings before closing."""
        self.slice_tab.save_settings()
        self.settings.set("window_geometry", self.saveGeometry())
        self.settings.set("window_state", self.saveState())
        event.accept()
