import argparse
import logging

from pymongo import MongoClient

from app.core.config import load_settings
from ingestion.ingest import load_json_file, ingest_many, insert_movies

logging.basicConfig(level=logging.INFO)


def main(argv=None):
    settings = load_settings()

    parser = argparse.ArgumentParser(description="Load movies from a JSON array or NDJSON file into MongoDB.")
    parser.add_argument("path", help="JSON or NDJSON file with movie objects")
    parser.add_argument("--mongo-uri", default=settings.mongo_uri)
    parser.add_argument("--db", default=settings.mongo_db)
    parser.add_argument("--collection", default=settings.movies_collection)
    parser.add_argument("--batch-size", type=int, default=500)
    parser.add_argument("--legacy", action="store_true", help="accept movies without a title")
    parser.add_argument("--drop", action="store_true", help="empty the collection first")
    args = parser.parse_args(argv)

    docs = ingest_many(load_json_file(args.path), require_title=not args.legacy)
    if not docs:
        print("Nothing to insert.")
        return 0

    client = MongoClient(args.mongo_uri)
    try:
        collection = client[args.db][args.collection]
        if args.drop:
            deleted = collection.delete_many({}).deleted_count
            print(f"Removed {deleted} existing movies.")
        inserted = insert_movies(collection, docs, batch_size=args.batch_size)
    finally:
        client.close()

    print(f"Inserted {inserted} movies into {args.db}.{args.collection}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
