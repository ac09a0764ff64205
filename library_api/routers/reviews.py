import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm.exc import StaleDataError

from library_api import auth, models, schemas
from library_api.dependencies import get_review_service
from library_api.rate_limiter import default_limit, limiter
from library_api.services import ReviewService

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[schemas.ReviewOut])
@limiter.limit(default_limit)
def get_reviews(request: Request, reviews: ReviewService = Depends(get_review_service)):
    return [schemas.ReviewOut.from_model(review) for review in reviews.get_all_with_book()]


@router.get("/{review_id}", response_model=schemas.ReviewOut)
@limiter.limit(default_limit)
def get_review(request: Request, review_id: int, reviews: ReviewService = Depends(get_review_service)):
    review = reviews.get_review_with_book(review_id)
    if not review:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    return schemas.ReviewOut.from_model(review)


@router.post("", response_model=schemas.ReviewOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def add_review(
    request: Request,
    review: schemas.ReviewCreate,
    response: Response,
    reviews: ReviewService = Depends(get_review_service),
    user: models.User = Depends(auth.get_current_user),
):
    new_review = reviews.add(
        models.Review(
            reviewer_name=review.reviewer_name,
            content=review.content,
            rating=review.rating,
            book_id=review.book_id,
        )
    )
    response.headers["Location"] = f"{router.prefix}/{new_review.id}"
    return schemas.ReviewOut.from_model(reviews.get_review_with_book(new_review.id))


@router.put("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def update_review(
    request: Request,
    review_id: int,
    review: schemas.ReviewUpdate,
    reviews: ReviewService = Depends(get_review_service),
    user: models.User = Depends(auth.get_current_user),
):
    if review_id != review.id:
        logger.warning(f"Review ID mismatch: expected {review_id}, got {review.id}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Review id mismatch")

    db_review = reviews.get_by_id(review_id)
    if not db_review:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")

    db_review.reviewer_name = review.reviewer_name
    db_review.content = review.content
    db_review.rating = review.rating
    db_review.book_id = review.book_id
    try:
        reviews.update(db_review)
    except StaleDataError:
        if not reviews.exists(review_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
        raise


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def delete_review(
    request: Request,
    review_id: int,
    reviews: ReviewService = Depends(get_review_service),
    user: models.User = Depends(auth.get_current_user),
):
    reviews.delete(review_id)
