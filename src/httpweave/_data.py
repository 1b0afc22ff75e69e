"""
Field data container used for request bodies and query strings
"""

from urllib.parse import quote_plus


def build_query(data, prefix=None):
    """Encode a mapping as a query string.

    Nested mappings become ``key[sub]=value`` and sequences become repeated
    keys. ``None`` values are skipped.
    """
    pairs = []

    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            nested = build_query(value, name)
            if nested:
                pairs.append(nested)
        elif isinstance(value, (list, tuple)):
            for item in value:
                pairs.append(f"{quote_plus(name)}={quote_plus(_scalar(item))}")
        else:
            pairs.append(f"{quote_plus(name)}={quote_plus(_scalar(value))}")

    return "&".join(pairs)


def _scalar(value):
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


class Data:
    """Ordered set of named fields with optional value filters"""

    def __init__(self, data=None, filters=None):
        self._data = {}
        self._filters = []
        self._query_string = None
        self.prepared = False

        if filters:
            for flt in filters:
                self.add_filter(flt)
        if data:
            self.set_data(data)

    def add_filter(self, flt):
        """Register a callable applied to every scalar value on query preparation"""
        if not callable(flt):
            raise TypeError(f"Filter must be callable, got {flt!r}")
        self._filters.append(flt)
        return self

    def has_filters(self):
        return bool(self._filters)

    def set_data(self, data):
        if isinstance(data, Data):
            data = data.get_data()
        self._data = dict(data)
        self._reset_prepared()
        return self

    def add_data(self, name, value=None):
        if isinstance(name, dict):
            self._data.update(name)
        else:
            self._data[name] = value
        self._reset_prepared()
        return self

    def get_data(self, key=None):
        if key is None:
            return dict(self._data)
        return self._data.get(key)

    def has_data(self, key=None):
        if key is None:
            return bool(self._data)
        return key in self._data

    def remove_data(self, key):
        self._data.pop(key, None)
        self._reset_prepared()
        return self

    def remove_all_data(self):
        self._data = {}
        self._reset_prepared()
        return self

    def _filtered(self, value):
        if isinstance(value, dict):
            return {k: self._filtered(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._filtered(v) for v in value]
        for flt in self._filters:
            value = flt(value)
        return value

    def _reset_prepared(self):
        self._query_string = None
        self.prepared = False

    def prepare_query_string(self):
        """Encode the fields as a query string (``None`` when there are no fields)"""
        if not self._data:
            self._query_string = None
        else:
            self._query_string = build_query(self._filtered(self._data))
        return self._query_string

    @property
    def query_string(self):
        if self._query_string is None and self._data:
            self.prepare_query_string()
        return self._query_string

    @property
    def query_string_length(self):
        query = self.query_string
        return len(query.encode("utf-8")) if query else 0

    def __len__(self):
        return len(self._data)

    def __contains__(self, key):
        return key in self._data

    def __iter__(self):
        return iter(self._data)

    def __repr__(self):
        return f"Data({self._data!r})"
