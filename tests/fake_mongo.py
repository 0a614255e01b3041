"""In-memory stand-in for the `links` collection.

Understands only what the stuck checks send: equality and `$ne` on dotted paths,
inclusion projections with `_id: 0`, and `limit()`.
"""

import copy

_MISSING = object()


def _get_path(doc, dotted):
    cur = doc
    for part in dotted.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return _MISSING
        cur = cur[part]
    return cur


def _matches(doc, query):
    for key, cond in query.items():
        value = _get_path(doc, key)
        if isinstance(cond, dict) and "$ne" in cond:
            if value is not _MISSING and value == cond["$ne"]:
                return False
        elif value is _MISSING or value != cond:
            return False
    return True


def _project(doc, projection):
    if not projection:
        return copy.deepcopy(doc)
    out = {}
    if projection.get("_id", 1) and "_id" in doc:
        out["_id"] = doc["_id"]
    for key, flag in projection.items():
        if key == "_id" or not flag:
            continue
        value = _get_path(doc, key)
        if value is _MISSING:
            continue
        parts = key.split(".")
        target = out
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = copy.deepcopy(value)
    return out


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self.limit_value = None

    def limit(self, n):
        self.limit_value = n
        return self

    def __iter__(self):
        docs = self._docs if self.limit_value is None else self._docs[: self.limit_value]
        return iter(docs)


class FakeCollection:
    def __init__(self, docs=None):
        self.docs = list(docs or [])
        self.calls = []

    def count_documents(self, query):
        self.calls.append(("count_documents", query))
        return sum(1 for d in self.docs if _matches(d, query))

    def find(self, query, projection=None):
        self.calls.append(("find", query, projection))
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, query)])


class FakeDatabase(dict):
    """`db["links"]` returns the same FakeCollection every time."""

    def __missing__(self, name):
        coll = FakeCollection()
        self[name] = coll
        return coll


def link_doc(n, *, country=None, done=None, exclude=None, created="2024-01-02T03:04:05"):
    """Link record stuck (or not) per stage; `done` maps analysis key -> processing_done."""
    from datetime import datetime

    done = done or {}
    keys = ["source-channel-analysis", "website-scraping", "general-file-parser", "articleclassifier"]
    doc = {
        "_id": f"oid-{n}",
        "link_yid": f"yid-{n}",
        "url": f"https://example.com/article/{n}",
        "createdAt": datetime.fromisoformat(created),
        "download_analysis": {k: {"processing_done": done.get(k, False)} for k in keys},
    }
    if country is not None:
        doc["source_channel"] = {"country_code": country, "name": f"channel-{n}"}
    if exclude is not None:
        doc["exclude_link"] = exclude
    return doc
