"""
PySide6 window for the weekly overview.

This module shows the weekly grid of booked hours in a table and lets the
user step through weeks. Fetching happens in a worker thread so the window
stays responsive.
"""

import sys
from datetime import date, timedelta
from typing import Optional

from PySide6.QtWidgets import (
    QApplication,
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QTableView,
    QLabel,
    QMessageBox,
    QHeaderView,
)
from PySide6.QtCore import Qt, QAbstractTableModel, QModelIndex, Signal, QThread
from PySide6.QtGui import QColor, QBrush

from .config import Config
from .redmine_client import RedmineClient
from .report import Severity, WeeklyGrid
from .tracking import fetch_week
from .view import format_hours
from .week_utils import WEEKDAY_NAMES, format_week_label, monday_of


class WeeklyGridTableModel(QAbstractTableModel):
    """
    Table model for a WeeklyGrid with its totals row.
    """

    TOTALS_BG_COLOR = QColor(180, 180, 180)
    SEVERITY_COLORS = {
        Severity.NORMAL: QColor(200, 235, 200),
        Severity.WARNING: QColor(250, 230, 160),
        Severity.OVERTIME: QColor(240, 170, 170),
    }

    def __init__(self, grid: Optional[WeeklyGrid] = None):
        super().__init__()
        self.grid = grid

    @property
    def total_column(self) -> int:
        return len(WEEKDAY_NAMES) + 1

    def rowCount(self, parent=QModelIndex()):
        # Include one extra row for totals
        return len(self.grid.rows) + 1 if self.grid else 0

    def columnCount(self, parent=QModelIndex()):
        return len(WEEKDAY_NAMES) + 2

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if role != Qt.DisplayRole or orientation != Qt.Horizontal:
            return None
        if section == 0:
            return "Project"
        if section == self.total_column:
            return "∑"
        day = self.grid.days[section - 1] if self.grid else None
        name = WEEKDAY_NAMES[section - 1]
        return f"{name} {day.strftime('%d.%m.')}" if day else name

    def _cell(self, row_idx: int, col: int):
        is_totals_row = row_idx == len(self.grid.rows)
        if is_totals_row:
            if col == self.total_column:
                return self.grid.totals.grand_total
            return self.grid.totals.cells[col - 1]

        row = self.grid.rows[row_idx]
        if col == self.total_column:
            return row.total
        return row.cells[col - 1]

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid() or self.grid is None:
            return None

        row_idx = index.row()
        col = index.column()
        is_totals_row = row_idx == len(self.grid.rows)

        if col == 0:
            if role == Qt.DisplayRole:
                return "Total" if is_totals_row else self.grid.rows[row_idx].name
            if role == Qt.BackgroundRole and is_totals_row:
                return QBrush(self.TOTALS_BG_COLOR)
            return None

        cell = self._cell(row_idx, col)

        if role == Qt.DisplayRole:
            return "" if cell.blank else format_hours(cell.hours)

        if role == Qt.TextAlignmentRole:
            return int(Qt.AlignRight | Qt.AlignVCenter)

        if role == Qt.BackgroundRole:
            if cell.severity is not None:
                return QBrush(self.SEVERITY_COLORS[cell.severity])
            if is_totals_row or col == self.total_column:
                return QBrush(self.TOTALS_BG_COLOR)

        return None

    def setGrid(self, grid: WeeklyGrid):
        """Update the model with a new grid."""
        self.beginResetModel()
        self.grid = grid
        self.endResetModel()


class FetchWeekWorker(QThread):
    """
    Worker thread fetching one week and building its grid.
    """
    finished = Signal(object)
    error = Signal(str)

    def __init__(self, client: RedmineClient, day: date):
        super().__init__()
        self.client = client
        self.day = day

    def run(self):
        """Fetch the week."""
        try:
            _, grid = fetch_week(self.client, self.day)
            self.finished.emit(grid)
        except Exception as e:
            self.error.emit(str(e))


class WeekWindow(QMainWindow):
    """
    Main window showing one week at a time.
    """

    def __init__(self, client: RedmineClient, day: Optional[date] = None):
        super().__init__()
        self.client = client
        self.monday = monday_of(day or date.today())
        self.worker: Optional[FetchWeekWorker] = None

        self.initUI()
        self.loadWeek()

    def initUI(self):
        """Initialize the user interface."""
        self.setWindowTitle("Redmine Time Tracking")
        self.setGeometry(100, 100, 900, 400)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        layout = QVBoxLayout()
        central_widget.setLayout(layout)

        nav_layout = QHBoxLayout()

        self.prev_button = QPushButton("◀ Previous week")
        self.prev_button.clicked.connect(lambda: self.shiftWeek(-1))
        nav_layout.addWidget(self.prev_button)

        self.week_label = QLabel("")
        self.week_label.setStyleSheet("font-size: 14px; font-weight: bold;")
        self.week_label.setAlignment(Qt.AlignCenter)
        nav_layout.addWidget(self.week_label, stretch=1)

        self.next_button = QPushButton("Next week ▶")
        self.next_button.clicked.connect(lambda: self.shiftWeek(1))
        nav_layout.addWidget(self.next_button)

        layout.addLayout(nav_layout)

        self.table_view = QTableView()
        self.table_model = WeeklyGridTableModel()
        self.table_view.setModel(self.table_model)
        self.table_view.setEditTriggers(QTableView.NoEditTriggers)  # Read-only
        self.table_view.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeToContents)
        self.table_view.verticalHeader().setVisible(False)
        layout.addWidget(self.table_view)

    def shiftWeek(self, weeks: int):
        """Move ``weeks`` weeks forward (negative for backward)."""
        self.monday = self.monday + timedelta(weeks=weeks)
        self.loadWeek()

    def loadWeek(self):
        """Start fetching the current week."""
        if self.worker is not None and self.worker.isRunning():
            return

        self.week_label.setText(f"{format_week_label(self.monday)} (loading...)")
        self.prev_button.setEnabled(False)
        self.next_button.setEnabled(False)

        self.worker = FetchWeekWorker(self.client, self.monday)
        self.worker.finished.connect(self.onWeekLoaded)
        self.worker.error.connect(self.onLoadError)
        self.worker.start()

    def onWeekLoaded(self, grid: WeeklyGrid):
        self.table_model.setGrid(grid)
        self.week_label.setText(
            f"{format_week_label(grid.monday)}: {format_hours(grid.grand_total)} h"
        )
        self.prev_button.setEnabled(True)
        self.next_button.setEnabled(True)

    def onLoadError(self, error_message: str):
        self.week_label.setText(format_week_label(self.monday))
        self.prev_button.setEnabled(True)
        self.next_button.setEnabled(True)
        QMessageBox.critical(
            self,
            "Redmine Error",
            f"Failed to load time entries:\n\n{error_message}"
        )


def main(config: Config, day: Optional[date] = None) -> int:
    """
    Main entry point for the GUI application.

    Args:
        config: Connection settings
        day: Date inside the week shown first (defaults to today)

    Returns:
        Exit code of the Qt event loop
    """
    app = QApplication.instance() or QApplication(sys.argv)
    window = WeekWindow(RedmineClient(config), day)
    window.show()
    return app.exec()
