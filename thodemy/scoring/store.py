# thodemy/scoring/store.py
"""Pending score edits for one evaluation.

The store is an immutable aggregate keyed by ``(sheet, criterion_key)``.
Every change goes through ``apply(event)``, which returns a new store and
leaves the old one untouched, so rollups can be computed from any snapshot.
"""
from dataclasses import dataclass, field, fields, replace

from .catalogue import DEFAULT_SOURCE
from .normalize import to_number


_NUMERIC_FIELDS = ("score", "max_score", "weight")


@dataclass(frozen=True)
class ScoreRecord:
    sheet: str
    criterion_key: str
    category: str = None
    criterion_label: str = None
    score: float = None
    max_score: float = None
    weight: float = None
    remarks: str = None
    source: str = None
    source_ref_id: str = None
    status: str = None

    @property
    def key(self):
        return (self.sheet, self.criterion_key)

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data):
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (data or {}).items() if k in known}
        for k in _NUMERIC_FIELDS:
            if k in values:
                values[k] = to_number(values[k])
        if values.get("source_ref_id") is not None:
            values["source_ref_id"] = str(values["source_ref_id"])
        values["sheet"] = str(values.get("sheet") or "").strip()
        values["criterion_key"] = str(values.get("criterion_key") or "").strip()
        return cls(**values)


def _coerce_changes(data):
    if isinstance(data, ScoreRecord):
        changes = data.to_dict()
        if changes.get("source") is None:
            changes.pop("source")
        return changes
    changes = dict(data or {})
    for k in _NUMERIC_FIELDS:
        if k in changes:
            changes[k] = to_number(changes[k])
    if changes.get("source_ref_id") is not None:
        changes["source_ref_id"] = str(changes["source_ref_id"])
    known = {f.name for f in fields(ScoreRecord)}
    return {k: v for k, v in changes.items() if k in known}


# events

@dataclass(frozen=True)
class SetScore:
    sheet: str
    criterion_key: str
    value: object
    extra: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SetRemarks:
    sheet: str
    criterion_key: str
    remarks: str


@dataclass(frozen=True)
class UpsertMany:
    records: tuple


@dataclass(frozen=True)
class InitFrom:
    scores: tuple


@dataclass(frozen=True)
class Delete:
    sheet: str
    criterion_key: str


class ScoreStore:
    def __init__(self, entries=None):
        self._entries = dict(entries or {})

    @classmethod
    def from_scores(cls, scores):
        return cls().apply(InitFrom(tuple(scores or ())))

    # reads

    def get(self, sheet, key):
        rec = self._entries.get((sheet, key))
        return rec.score if rec else None

    def get_remarks(self, sheet, key) -> str:
        rec = self._entries.get((sheet, key))
        return (rec.remarks or "") if rec else ""

    def get_record(self, sheet, key):
        return self._entries.get((sheet, key))

    def records(self, sheet=None):
        if sheet is None:
            return list(self._entries.values())
        return [r for r in self._entries.values() if r.sheet == sheet]

    def to_payload(self):
        return [r.to_dict() for r in self._entries.values()]

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries.values())

    def __contains__(self, key):
        return key in self._entries

    def __eq__(self, other):
        return isinstance(other, ScoreStore) and self._entries == other._entries

    def __repr__(self):
        return f"<ScoreStore entries={len(self._entries)}>"

    # writes

    def apply(self, event):
        entries = dict(self._entries)
        if isinstance(event, SetScore):
            existing = entries.get((event.sheet, event.criterion_key)) or ScoreRecord(event.sheet, event.criterion_key)
            changes = {"score": to_number(event.value), "source": DEFAULT_SOURCE}
            extra = _coerce_changes(event.extra)
            extra.pop("sheet", None)
            extra.pop("criterion_key", None)
            changes.update(extra)
            entries[existing.key] = replace(existing, **changes)
        elif isinstance(event, SetRemarks):
            existing = entries.get((event.sheet, event.criterion_key)) or ScoreRecord(event.sheet, event.criterion_key)
            entries[existing.key] = replace(existing, remarks=event.remarks)
        elif isinstance(event, UpsertMany):
            for data in event.records:
                changes = _coerce_changes(data)
                sheet = str(changes.get("sheet") or "").strip()
                ckey = str(changes.get("criterion_key") or "").strip()
                if not sheet or not ckey:
                    continue
                changes.update(sheet=sheet, criterion_key=ckey)
                existing = entries.get((sheet, ckey)) or ScoreRecord(sheet, ckey)
                source = changes.pop("source", None) or existing.source or DEFAULT_SOURCE
                entries[(sheet, ckey)] = replace(existing, source=source, **changes)
        elif isinstance(event, InitFrom):
            entries = {}
            for data in event.scores:
                rec = data if isinstance(data, ScoreRecord) else ScoreRecord.from_dict(data)
                if rec.sheet and rec.criterion_key:
                    entries[rec.key] = rec
        elif isinstance(event, Delete):
            entries.pop((event.sheet, event.criterion_key), None)
        else:
            raise TypeError(f"unknown score store event: {event!r}")
        return ScoreStore(entries)

    def set_score(self, sheet, key, value, extra=None):
        return self.apply(SetScore(sheet, key, value, dict(extra or {})))

    def set_remarks(self, sheet, key, remarks):
        return self.apply(SetRemarks(sheet, key, remarks))

    def upsert_many(self, records):
        return self.apply(UpsertMany(tuple(records)))

    def init_from(self, scores):
        return self.apply(InitFrom(tuple(scores or ())))

    def delete(self, sheet, key):
        return self.apply(Delete(sheet, key))
