import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from catalog.filters import Pagination, Predicate, build
from catalog.pipeline import build_pipeline, unpack_facet
from models.movie import InvalidMovieError, normalize_movie, validate_movie_changes, validate_new_movie
from app.core.database import parse_object_id
from app.core.exceptions import NotFoundError, StoreError, ValidationError
from app.models.movie import DeleteResponse, MovieOut, MoviePage

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


class MovieService:
    def __init__(self, collection, require_title: bool = True):
        self.collection = collection
        self.require_title = require_title

    async def list(self, predicate: Predicate, pagination: Pagination) -> tuple[list[dict], int]:
        """Run the facet pipeline and return (normalized page items, total matches)."""
        pipeline = build_pipeline(predicate, pagination)

        try:
            cursor = await self.collection.aggregate(pipeline)
            results = await cursor.to_list(length=1)
        except PyMongoError as e:
            logger.exception("Movie listing failed for pipeline %s", pipeline)
            raise StoreError("Erro ao listar filmes.") from e

        raw_items, total = unpack_facet(results[0] if results else None)
        return [normalize_movie(doc) for doc in raw_items], total

    async def search(self, raw_params: Mapping[str, Any]) -> MoviePage:
        predicate, pagination = build(raw_params)
        items, total = await self.list(predicate, pagination)

        return MoviePage(
            page=pagination.page,
            pageSize=pagination.page_size,
            total=total,
            totalPages=pagination.total_pages(total),
            items=[MovieOut(**item) for item in items],
        )

    async def get(self, movie_id: str) -> MovieOut:
        oid = parse_object_id(movie_id)

        try:
            doc = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            logger.exception("Lookup failed for movie %s", movie_id)
            raise StoreError("Erro ao buscar filme.") from e

        if doc is None:
            raise NotFoundError()
        return MovieOut(**normalize_movie(doc))

    async def create(self, payload: dict) -> MovieOut:
        try:
            data = validate_new_movie(payload, require_title=self.require_title)
        except InvalidMovieError as e:
            raise ValidationError(str(e), details={"field": e.field}) from e

        now = _now()
        data["createdAt"] = now
        data["updatedAt"] = now

        try:
            result = await self.collection.insert_one(data)
        except PyMongoError as e:
            logger.exception("Insert failed for movie payload")
            raise StoreError("Erro ao criar filme.") from e

        data["_id"] = result.inserted_id
        logger.info("Created movie %s", result.inserted_id)
        return MovieOut(**normalize_movie(data))

    async def update(self, movie_id: str, payload: dict) -> MovieOut:
        oid = parse_object_id(movie_id)

        try:
            changes = validate_movie_changes(payload)
        except InvalidMovieError as e:
            raise ValidationError(str(e), details={"field": e.field}) from e

        if not changes:
            raise ValidationError("Nenhum campo para atualizar.")

        changes["updatedAt"] = _now()

        try:
            doc = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.exception("Update failed for movie %s", movie_id)
            raise StoreError("Erro ao atualizar filme.") from e

        if doc is None:
            raise NotFoundError()
        return MovieOut(**normalize_movie(doc))

    async def delete(self, movie_id: str) -> DeleteResponse:
        oid = parse_object_id(movie_id)

        try:
            result = await self.collection.delete_one({"_id": oid})
        except PyMongoError as e:
            logger.exception("Delete failed for movie %s", movie_id)
            raise StoreError("Erro ao remover filme.") from e

        if result.deleted_count == 0:
            raise NotFoundError()

        logger.info("Deleted movie %s", movie_id)
        return DeleteResponse(message="Filme removido com sucesso.", id=str(oid))
