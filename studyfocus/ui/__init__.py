from .main_window import MainWindow
from .stats_widget import StatsWidget

__all__ = ["MainWindow", "StatsWidget"]
