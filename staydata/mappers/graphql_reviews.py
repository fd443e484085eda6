from typing import Any

from staydata.exceptions.custom import ParseError
from staydata.mappers.json_probe import (
    as_dict,
    dig,
    probe_bool,
    probe_float,
    probe_int,
    probe_list,
    probe_str,
)
from staydata.schemas.review import Review, ReviewsPage, ReviewsSummary

_REVIEWS_ROOT = "data.presentation.stayProductDetailPage.reviews"

# (field, accepted labels, accepted categoryType)
_CATEGORIES = (
    ("cleanliness", ("Cleanliness",), "CLEANLINESS"),
    ("accuracy", ("Accuracy",), "ACCURACY"),
    ("communication", ("Communication",), "COMMUNICATION"),
    ("location", ("Location",), "LOCATION"),
    ("check_in", ("Check-in", "check_in"), "CHECKIN"),
    ("value", ("Value",), "VALUE"),
)


def _category_value(category: Any) -> float | None:
    value = probe_float(category, "value")
    if value is not None:
        return value
    localized = probe_str(category, "localizedRating")
    if localized is not None:
        try:
            return float(localized)
        except ValueError:
            pass
    percentage = probe_float(category, "percentage")
    return percentage * 5.0 if percentage is not None else None


def parse_summary(data: Any) -> ReviewsSummary | None:
    overall = probe_float(data, "overallRating", "reviewSummary.overallRating")
    if overall is None:
        return None

    ratings: dict[str, float | None] = {}
    for category in probe_list(data, "ratings", "categoryRatings", "reviewSummary.categoryRatings") or []:
        label = probe_str(category, "label", "name") or ""
        kind = probe_str(category, "categoryType") or ""
        for field, labels, category_type in _CATEGORIES:
            if label in labels or kind == category_type:
                ratings[field] = _category_value(category)
                break

    return ReviewsSummary(
        overall_rating=overall,
        total_reviews=probe_int(data, "reviewsCount", "overallCount", "reviewSummary.totalReviews") or 0,
        **ratings,
    )


def parse_single_review(data: Any) -> Review | None:
    comment = probe_str(data, "comments", "comment", "text", "body", "content")
    if comment is None:
        return None
    return Review(
        author=probe_str(data, "reviewer.firstName", "reviewerName") or "Anonymous",
        date=probe_str(data, "createdAt", "localizedDate") or "",
        rating=probe_float(data, "rating"),
        comment=comment,
        response=probe_str(data, "response", "hostResponse.comments"),
        reviewer_location=probe_str(data, "reviewer.location"),
        language=probe_str(data, "language"),
        is_translated=probe_bool(data, "isTranslated"),
    )


def parse_reviews_response(payload: Any, listing_id: str, offset: int = 0) -> ReviewsPage:
    """Build a ReviewsPage from a ``StaysPdpReviewsQuery`` response.

    ``offset`` is the offset the page was requested at; a ``metadata.offset``
    echoed by the server takes precedence.
    """
    data = as_dict(dig(payload, _REVIEWS_ROOT))
    if data is None:
        raise ParseError("GraphQL reviews: could not find reviews object")

    reviews = [
        review
        for item in probe_list(data, "reviews") or []
        if (review := parse_single_review(item)) is not None
    ]

    current_offset = probe_int(data, "metadata.offset")
    if current_offset is None:
        current_offset = offset
    total = probe_int(data, "reviewsCount", "metadata.reviewsCount")
    # Inclusive comparison kept as-is: a page ending exactly at ``total``
    # still advertises one more (empty) page.
    has_more = total is not None and current_offset + len(reviews) <= total

    next_cursor = str(current_offset + len(reviews)) if has_more and reviews else None
    return ReviewsPage(
        listing_id=listing_id,
        summary=parse_summary(data),
        reviews=reviews,
        next_cursor=next_cursor,
    )
