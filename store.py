import threading

# table -> column that holds the owning principal
OWNER_COLUMNS = {
    'fees': 'student_id',
    'expenses': 'created_by',
    'budgets': 'created_by',
}


class RecordCache:
    """Read-through cache of single rows keyed by (table, id).

    Writers must call ``invalidate`` after a successful commit.
    """

    def __init__(self):
        self._rows = {}
        self._lock = threading.Lock()

    def get(self, table, record_id, loader):
        key = (table, record_id)
        with self._lock:
            if key in self._rows:
                return dict(self._rows[key])
        row = loader()
        if row is not None:
            with self._lock:
                self._rows[key] = dict(row)
        return row

    def invalidate(self, table, record_id=None):
        with self._lock:
            if record_id is not None:
                self._rows.pop((table, record_id), None)
                return
            for key in [k for k in self._rows if k[0] == table]:
                del self._rows[key]

    def clear(self):
        with self._lock:
            self._rows.clear()

    def __contains__(self, key):
        with self._lock:
            return key in self._rows


def get_student(cur, user_id):
    cur.execute("SELECT * FROM students WHERE user_id=%s", (user_id,))
    return cur.fetchone()


def fetch_owned(cur, cache, table, record_id, owner_id, fresh=False):
    """Load one row through ``cache``; rows owned by someone else read as missing.

    Pass ``fresh=True`` before a read-modify-write so the row comes from the
    store rather than a copy cached by an earlier request.
    """
    owner_column = OWNER_COLUMNS[table]

    def load():
        cur.execute(f"SELECT * FROM {table} WHERE id=%s", (record_id,))
        return cur.fetchone()

    if fresh:
        cache.invalidate(table, record_id)
    row = cache.get(table, record_id, load)
    if row is None or row.get(owner_column) != owner_id:
        return None
    return row
