import logging

from PySide6 import QtCore

from .. import core as engine
from ..errors import AnalysisCancelled, AnalysisError

logger = logging.getLogger(__name__)


class AnalysisSignals(QtCore.QObject):
    """Signals for the overlay analysis workers.

    The trailing int is the caller's generation counter, echoed back so the
    view can ignore results for an image it has already left.
    """

    peakingReady = QtCore.Signal(object, int)
    histogramReady = QtCore.Signal(object, int)
    cancelled = QtCore.Signal(int)
    error = QtCore.Signal(str, int)


class _AnalysisWorker(QtCore.QRunnable):
    def __init__(self, signals, image, generation, request_id=None):
        super().__init__()
        self.signals = signals
        self.image = image
        self.generation = generation
        self.request_id = request_id

    def _compute(self):
        raise NotImplementedError

    def _emit_result(self, result):
        raise NotImplementedError

    def run(self):
        try:
            result = self._compute()
        except AnalysisCancelled:
            # Superseded by a newer request; keep whatever overlay is shown
            self.signals.cancelled.emit(self.generation)
            return
        except (AnalysisError, ValueError) as e:
            logger.error(f"{type(self).__name__} failed: {e}")
            self.signals.error.emit(str(e), self.generation)
            return
        except Exception as e:
            logger.error(f"{type(self).__name__} crashed: {e}", exc_info=True)
            self.signals.error.emit(str(e), self.generation)
            return
        self._emit_result(result)


class PeakingWorker(_AnalysisWorker):
    """Runs focus_peaking in a background thread."""

    def __init__(self, signals, image, threshold, generation, request_id=None):
        super().__init__(signals, image, generation, request_id)
        self.threshold = threshold

    def _compute(self):
        return engine.focus_peaking(self.image, self.threshold, self.request_id)

    def _emit_result(self, result):
        self.signals.peakingReady.emit(result, self.generation)


class HistogramWorker(_AnalysisWorker):
    """Runs calculate_histogram in a background thread."""

    def __init__(self, signals, image, mode, generation, request_id=None):
        super().__init__(signals, image, generation, request_id)
        self.mode = mode

    def _compute(self):
        return engine.calculate_histogram(self.image, self.mode, self.request_id)

    def _emit_result(self, result):
        self.signals.histogramReady.emit(result, self.generation)
