from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_movie_service, read_json_body
from app.core.movie_service import MovieService
from app.models.movie import DeleteResponse, MovieOut, MoviePage

router = APIRouter()

@router.get("", response_model=MoviePage)
async def list_movies(
    search: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    pageSize: Optional[str] = Query(None),
    featured: Optional[str] = Query(None),
    minRating: Optional[str] = Query(None),
    maxRating: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    service: MovieService = Depends(get_movie_service),
    ):
    # left as strings, the filter builder parses them
    params = {
        "search": search,
        "page": page,
        "pageSize": pageSize,
        "featured": featured,
        "minRating": minRating,
        "maxRating": maxRating,
        "year": year,
    }
    return await service.search({k: v for k, v in params.items() if v is not None})

@router.get("/{movie_id}", response_model=MovieOut)
async def get_movie(movie_id: str, service: MovieService = Depends(get_movie_service)):
    return await service.get(movie_id)

@router.post("", response_model=MovieOut, status_code=201)
async def create_movie(
    body: dict = Depends(read_json_body),
    service: MovieService = Depends(get_movie_service),
    ):
    return await service.create(body)

@router.put("/{movie_id}", response_model=MovieOut)
async def update_movie(
    movie_id: str,
    body: dict = Depends(read_json_body),
    service: MovieService = Depends(get_movie_service),
    ):
    return await service.update(movie_id, body)

@router.delete("/{movie_id}", response_model=DeleteResponse)
async def delete_movie(movie_id: str, service: MovieService = Depends(get_movie_service)):
    return await service.delete(movie_id)
