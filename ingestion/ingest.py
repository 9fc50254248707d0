from models.movie import InvalidMovieError, validate_new_movie
from datetime import datetime, timezone
import logging
from typing import Optional, Iterable, Iterator, List
import json

DEFAULT_BATCH_SIZE = 500

def ingest_one(raw: dict, require_title: bool = True) -> Optional[dict]:
    if not isinstance(raw, dict):
        logging.warning("Skipping non-object record: %r", raw)
        return None

    try:
        doc = validate_new_movie(raw, require_title=require_title)
    except InvalidMovieError as e:
        logging.warning("Skipping movie title=%s: %s", raw.get("title", "<missing>"), e)
        return None

    now = datetime.now(timezone.utc)
    doc["createdAt"] = now
    doc["updatedAt"] = now
    return doc

def ingest_many(raw_list: Iterable[dict], continue_on_error=True, require_title: bool = True) -> List[dict]:
    results = []
    ok_count = 0
    skipped_count = 0

    for raw in raw_list:
        result = ingest_one(raw, require_title=require_title)

        if result is None:
            if not continue_on_error:
                raise InvalidMovieError(None, f"Invalid movie record after {ok_count} valid ones")
            skipped_count += 1
            continue

        ok_count += 1
        results.append(result)

    logging.warning("OK=%s", ok_count)
    logging.warning("SKIP=%s", skipped_count)

    return results

def _first_significant_char(f) -> str:
    while True:
        char = f.read(1)
        if not char or not char.isspace():
            return char

def _array_records(f, path) -> Iterator[dict]:
    try:
        data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not a valid JSON array: {e}") from e

    if not isinstance(data, list):
        raise ValueError(f"{path} must hold a JSON array of movies")

    for position, item in enumerate(data):
        if isinstance(item, dict):
            yield item
        else:
            logging.warning("Array item %s is not an object, skipping", position)

def _ndjson_records(f) -> Iterator[dict]:
    for lineno, line in enumerate(f, start=1):
        line = line.strip()
        if not line:
            continue

        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            logging.warning("Skipping invalid JSON line %s: %s", lineno, e)
            continue

        if isinstance(obj, dict):
            yield obj
        else:
            logging.warning("Line %s is not an object, skipping", lineno)

def load_json_file(path) -> Iterator[dict]:
    """Yield movie objects from a JSON array file or an NDJSON file (one object per line)."""
    # utf-8-sig drops a leading BOM
    with open(path, "r", encoding="utf-8-sig") as f:
        is_array = _first_significant_char(f) == "["
        f.seek(0)

        records = _array_records(f, path) if is_array else _ndjson_records(f)
        yield from records

def insert_movies(collection, docs: List[dict], batch_size: int = DEFAULT_BATCH_SIZE) -> int:
    """Insert with a synchronous pymongo collection, in batches. Returns the inserted count."""
    inserted = 0
    for start in range(0, len(docs), batch_size):
        batch = docs[start:start + batch_size]
        result = collection.insert_many(batch, ordered=False)
        inserted += len(result.inserted_ids)

    logging.info("Inserted %d movies into %s", inserted, collection.name)
    return inserted
