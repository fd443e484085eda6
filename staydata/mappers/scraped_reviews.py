from typing import Any

from staydata.mappers.json_probe import (
    as_dict,
    dig,
    find_first,
    probe_float,
    probe_int,
    probe_list,
    probe_str,
)
from staydata.mappers.page_payloads import (
    DEFERRED_STATE,
    NEXT_DATA,
    NIOBE_ENTRY,
    first_match,
    parse_html,
)
from staydata.mappers.pdp_sections import find_section, section_list, sections_container
from staydata.schemas.review import Review, ReviewsPage, ReviewsSummary

_REVIEW_LIST_PATHS = (
    "props.pageProps.reviews",
    "props.pageProps.listing.reviews",
    "data.presentation.stayProductDetailPage.reviews.reviews",
)
_SUMMARY_PATHS = (
    "props.pageProps.listing",
    "data.presentation.stayProductDetailPage.reviewsSummary",
)
_LABELS = {
    "cleanliness": "cleanliness",
    "accuracy": "accuracy",
    "communication": "communication",
    "location": "location",
    "check-in": "check_in",
    "checkin": "check_in",
    "value": "value",
}


def _page_review(data: Any) -> Review | None:
    comment = probe_str(data, "comments", "comment", "text")
    if comment is None:
        return None
    return Review(
        author=probe_str(
            data, "reviewer.firstName", "reviewer.name", "author", "authorName"
        )
        or "Anonymous",
        date=probe_str(data, "createdAt", "date", "localizedDate") or "",
        rating=probe_float(data, "rating"),
        comment=comment,
        response=probe_str(data, "response.comments", "response.text"),
    )


def _highlight_reviews(sbui: Any) -> list[Review]:
    reviews: list[Review] = []
    for section in probe_list(sbui, "sectionConfiguration.root.sections") or []:
        for highlight in probe_list(section, "sectionData.reviewHighlights") or []:
            text = probe_str(highlight, "reviewText")
            if text:
                reviews.append(
                    Review(author=probe_str(highlight, "reviewerName") or "Guest", comment=text)
                )
    return reviews


def _score(rating: Any) -> float | None:
    localized = probe_str(rating, "localizedRating")
    if localized is not None:
        try:
            return float(localized)
        except ValueError:
            pass
    return probe_float(rating, "rating")


def _reviews_from_sections(payload: Any, listing_id: str) -> ReviewsPage | None:
    sections = section_list(payload)
    if sections is None:
        return None
    section = find_section(sections, "REVIEWS_DEFAULT")
    overall = probe_float(section, "overallRating")
    if overall is None:
        return None

    categories: dict[str, float | None] = {}
    for rating in probe_list(section, "ratings") or []:
        field = _LABELS.get((probe_str(rating, "label") or "").lower())
        if field:
            categories[field] = _score(rating)

    reviews = [
        review
        for item in probe_list(section, "reviewsData.reviews") or []
        if (review := _page_review(item)) is not None
    ]
    if not reviews:
        reviews = _highlight_reviews(dig(sections_container(payload), "sbuiData"))

    return ReviewsPage(
        listing_id=listing_id,
        summary=ReviewsSummary(
            overall_rating=overall,
            total_reviews=probe_int(section, "overallCount") or 0,
            **categories,
        ),
        reviews=reviews,
    )


def _looks_like_review_holder(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    items = node.get("reviews")
    return isinstance(items, list) and any(
        isinstance(item, dict) and ("comments" in item or "comment" in item or "reviewer" in item)
        for item in items
    )


def _summary_from_json(payload: Any) -> ReviewsSummary | None:
    for path in _SUMMARY_PATHS:
        data = as_dict(dig(payload, path))
        overall = probe_float(data, "avgRating", "overallRating")
        if overall is None:
            continue
        return ReviewsSummary(
            overall_rating=overall,
            total_reviews=probe_int(data, "reviewsCount", "totalReviews") or 0,
            cleanliness=probe_float(data, "cleanlinessRating"),
            accuracy=probe_float(data, "accuracyRating"),
            communication=probe_float(data, "communicationRating"),
            location=probe_float(data, "locationRating"),
            check_in=probe_float(data, "checkinRating"),
            value=probe_float(data, "valueRating"),
        )
    return None


def _reviews_from_json(payload: Any, listing_id: str) -> ReviewsPage | None:
    items = probe_list(payload, *_REVIEW_LIST_PATHS)
    if items is None:
        holder = find_first(payload, _looks_like_review_holder)
        items = holder["reviews"] if holder is not None else None
    if not items:
        return None

    reviews = [review for item in items if (review := _page_review(item)) is not None]
    if not reviews:
        return None
    return ReviewsPage(listing_id=listing_id, summary=_summary_from_json(payload), reviews=reviews)


def parse_reviews(html: str, listing_id: str) -> ReviewsPage:
    """Reviews from a rendered listing page.

    Falls back to review cards in the markup, and to an empty page rather
    than an error when nothing is found.
    """
    soup = parse_html(html)

    def from_sections(payload: Any) -> ReviewsPage | None:
        return _reviews_from_sections(payload, listing_id)

    def from_json(payload: Any) -> ReviewsPage | None:
        return _reviews_from_json(payload, listing_id)

    page = first_match(
        soup,
        {
            NEXT_DATA: (from_json,),
            NIOBE_ENTRY: (from_sections, from_json),
            DEFERRED_STATE: (from_json,),
        },
    )
    if page is not None:
        return page

    reviews = [
        Review(author="Guest", comment=text)
        for element in soup.select("[data-testid='review'], [itemprop='review']")
        if (text := element.get_text().strip())
    ]
    return ReviewsPage(listing_id=listing_id, reviews=reviews)
