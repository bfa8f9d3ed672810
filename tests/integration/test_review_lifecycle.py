"""
Integration tests for review submission, moderation and statistics.
"""
import pytest

from mitc_store.application.review_manager import REVIEWS_COLLECTION
from mitc_store.domain.errors import NotFoundError, ValidationError
from mitc_store.domain.models import ReviewStatus


def submit(reviews, rating, name="Asif"):
    return reviews.submit({"customer_name": name, "rating": rating, "comment": "Solid machine"})


def approved_with(reviews, ratings):
    for rating in ratings:
        reviews.approve(submit(reviews, rating).id)


def test_submit_starts_pending(reviews):
    review = reviews.submit({
        "customer_name": " Asif ",
        "rating": "5",
        "title": "Great shop",
        "comment": "Got my laptop in a day",
    })

    assert review.status == ReviewStatus.PENDING
    assert review.rating == 5
    assert review.customer_name == "Asif"
    assert review.source == "Manual"
    assert review.created_at is not None
    assert not review.is_approved


@pytest.mark.parametrize("rating", [0, 6, 4.5, "abc", True])
def test_submit_rejects_bad_rating(reviews, store, rating):
    with pytest.raises(ValidationError) as exc:
        submit(reviews, rating)

    assert exc.value.errors == ["Rating must be a whole number between 1 and 5"]
    assert store.count(REVIEWS_COLLECTION) == 0


def test_submit_reports_every_missing_field(reviews):
    with pytest.raises(ValidationError) as exc:
        reviews.submit({})

    assert exc.value.errors == ["Name is required", "Rating is required", "Comment is required"]


def test_pending_review_not_public(reviews):
    submit(reviews, 5)
    assert reviews.list_approved() == []


def test_approve_and_reject(reviews):
    approved = submit(reviews, 5)
    rejected = submit(reviews, 1)

    reviews.approve(approved.id)
    reviews.reject(rejected.id)

    assert [r.id for r in reviews.list_approved()] == [approved.id]
    assert [r.id for r in reviews.list(status="Rejected")] == [rejected.id]


def test_moderation_can_be_reversed(reviews):
    review = submit(reviews, 4)
    reviews.approve(review.id)

    assert reviews.reject(review.id).status == ReviewStatus.REJECTED
    assert reviews.list_approved() == []


def test_moderate_rejects_pending_decision(reviews):
    review = submit(reviews, 4)
    with pytest.raises(ValidationError):
        reviews.moderate(review.id, "Pending")


def test_moderate_rejects_unknown_decision(reviews):
    review = submit(reviews, 4)
    with pytest.raises(ValidationError):
        reviews.moderate(review.id, "Maybe")


def test_moderate_missing_review(reviews):
    with pytest.raises(NotFoundError):
        reviews.approve("missing")


def test_list_newest_first(reviews):
    first = submit(reviews, 3)
    second = submit(reviews, 4)

    assert [r.id for r in reviews.list()] == [second.id, first.id]


def test_delete(reviews):
    review = submit(reviews, 3)
    reviews.delete(review.id)
    with pytest.raises(NotFoundError):
        reviews.get(review.id)


def test_stats_over_approved_only(reviews):
    approved_with(reviews, [5, 5, 4, 3, 5])
    submit(reviews, 1)

    stats = reviews.stats()

    assert stats.total == 5
    assert stats.average_rating == "4.4"
    assert stats.rating_distribution == {1: 0, 2: 0, 3: 1, 4: 1, 5: 3}


def test_stats_rounds_half_up(reviews):
    approved_with(reviews, [4, 4, 5, 4])
    assert reviews.stats().average_rating == "4.3"


def test_stats_whole_average_keeps_decimal(reviews):
    approved_with(reviews, [4, 4])
    assert reviews.stats().average_rating == "4.0"


def test_stats_empty(reviews):
    stats = reviews.stats()

    assert stats.total == 0
    assert stats.average_rating == 0
    assert stats.rating_distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
