# utils/roster_manager.py
import threading

import data_processing as dp
from config import CONFIG
from utils.debounce import Debouncer
from utils.errors import RosterError
from utils.logger import get_logger
from utils.models import DESCENDING, Notice

log = get_logger("roster")


class RosterManager:
    """
    Owns one RosterState. Every change replaces the state and schedules a
    debounced recompute, which ranks whatever the state is when it fires.
    """

    def __init__(self, settings=CONFIG, sort_order=DESCENDING, on_recompute=None):
        self.settings = settings
        self._state = dp.new_state(sort_order)
        self._lock = threading.RLock()
        self._on_recompute = on_recompute
        self._debouncer = Debouncer(self._recompute, settings.DEBOUNCE_MS)
        self.recompute_count = 0

    @property
    def state(self):
        with self._lock:
            return self._state

    @property
    def students(self):
        return self.state.students

    @property
    def sort_order(self):
        return self.state.sort_order

    def _replace(self, state):
        with self._lock:
            self._state = state
        if state.students:
            self._debouncer.schedule()

    def _recompute(self):
        with self._lock:
            self._state = dp.recompute(self._state)
            self.recompute_count += 1
            snapshot = self._state
        if self._on_recompute is not None:
            self._on_recompute(snapshot)

    # ---------- operations ----------
    # Each operation builds and installs its new state under the lock, so a
    # concurrent change can't be dropped between the read and the replace.
    def add_student(self, name, enrollment_number, marks=None, total=None, use_total_marks=False):
        """Returns None on success, or a Notice explaining why nothing was added."""
        with self._lock:
            try:
                state = dp.add_record(self._state, name, enrollment_number, marks=marks,
                                      total=total, use_total_marks=use_total_marks,
                                      settings=self.settings)
            except RosterError as exc:
                log.warning("Rejected entry: %s", exc.message)
                return Notice(title=exc.title, message=exc.message, level="danger")
            self._replace(state)
        return None

    def toggle_sort(self):
        with self._lock:
            state = self._state.model_copy(
                update={"sort_order": dp.toggle_sort_order(self._state.sort_order)}
            )
            self._replace(state)
        return state.sort_order

    def import_csv(self, text):
        try:
            students = dp.import_csv_text(text)
        except RosterError as exc:
            log.warning("Import failed: %s", exc.message)
            return Notice(title=exc.title, message=exc.message, level="danger")
        with self._lock:
            self._replace(self._state.with_students(students))
        return Notice(title="CSV import successful!",
                      message="Student data has been successfully imported.", level="success")

    def export_csv(self):
        """Returns (csv_text or None, Notice)."""
        text = dp.export_csv_text(self.students)
        if text is None:
            return None, Notice(title="No data to export!",
                                message="Please add student data to the table.", level="info")
        return text, Notice(title="CSV export successful!",
                            message="Your data has been successfully exported.", level="success")

    def flush(self):
        """Run a pending recompute immediately."""
        return self._debouncer.flush()

    def close(self):
        self._debouncer.cancel()
