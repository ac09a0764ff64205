import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm.exc import StaleDataError

from library_api import auth, models, schemas
from library_api.dependencies import get_publisher_service
from library_api.rate_limiter import default_limit, limiter
from library_api.services import PublisherService

router = APIRouter(prefix="/api/publishers", tags=["Publishers"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[schemas.PublisherOut])
@limiter.limit(default_limit)
def get_publishers(request: Request, publishers: PublisherService = Depends(get_publisher_service)):
    return publishers.get_all()


@router.get("/{publisher_id}", response_model=schemas.PublisherOut)
@limiter.limit(default_limit)
def get_publisher(
    request: Request,
    publisher_id: int,
    publishers: PublisherService = Depends(get_publisher_service),
):
    publisher = publishers.get_by_id(publisher_id)
    if not publisher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Publisher not found")
    return publisher


@router.get("/{publisher_id}/books", response_model=list[schemas.BookOut])
@limiter.limit(default_limit)
def get_publisher_books(
    request: Request,
    publisher_id: int,
    publishers: PublisherService = Depends(get_publisher_service),
):
    publisher = publishers.get_publisher_with_books(publisher_id)
    if not publisher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Publisher not found")
    return [schemas.BookOut.from_model(book) for book in publisher.books]


@router.post("", response_model=schemas.PublisherOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def add_publisher(
    request: Request,
    publisher: schemas.PublisherCreate,
    response: Response,
    publishers: PublisherService = Depends(get_publisher_service),
    user: models.User = Depends(auth.get_current_user),
):
    new_publisher = publishers.add(
        models.Publisher(
            name=publisher.name,
            address=publisher.address,
            contact_number=publisher.contact_number,
        )
    )
    response.headers["Location"] = f"{router.prefix}/{new_publisher.id}"
    return new_publisher


@router.put("/{publisher_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def update_publisher(
    request: Request,
    publisher_id: int,
    publisher: schemas.PublisherUpdate,
    publishers: PublisherService = Depends(get_publisher_service),
    user: models.User = Depends(auth.get_current_user),
):
    if publisher_id != publisher.id:
        logger.warning(f"Publisher ID mismatch: expected {publisher_id}, got {publisher.id}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Publisher id mismatch")

    db_publisher = publishers.get_by_id(publisher_id)
    if not db_publisher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Publisher not found")

    db_publisher.name = publisher.name
    db_publisher.address = publisher.address
    db_publisher.contact_number = publisher.contact_number
    try:
        publishers.update(db_publisher)
    except StaleDataError:
        if not publishers.exists(publisher_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Publisher not found")
        raise


@router.delete("/{publisher_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def delete_publisher(
    request: Request,
    publisher_id: int,
    publishers: PublisherService = Depends(get_publisher_service),
    user: models.User = Depends(auth.require_role("Admin")),
):
    publishers.delete(publisher_id)
