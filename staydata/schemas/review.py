from pydantic import BaseModel, ConfigDict


class Review(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: str
    date: str = ""
    rating: float | None = None
    comment: str
    response: str | None = None
    reviewer_location: str | None = None
    language: str | None = None
    is_translated: bool | None = None

    def __str__(self) -> str:
        header = f"**{self.author}**"
        if self.reviewer_location:
            header += f" from {self.reviewer_location}"
        header += f" ({self.date})"
        if self.rating is not None:
            header += f" - {self.rating:.1f}*"
        lines = [header, self.comment]
        if self.response:
            lines.append(f"> Host response: {self.response}")
        return "\n".join(lines)


class ReviewsSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_rating: float
    total_reviews: int = 0
    cleanliness: float | None = None
    accuracy: float | None = None
    communication: float | None = None
    location: float | None = None
    check_in: float | None = None
    value: float | None = None


_CATEGORY_LABELS = (
    ("cleanliness", "Cleanliness"),
    ("accuracy", "Accuracy"),
    ("communication", "Communication"),
    ("location", "Location"),
    ("check_in", "Check-in"),
    ("value", "Value"),
)


class ReviewsPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    listing_id: str
    summary: ReviewsSummary | None = None
    reviews: list[Review] = []
    next_cursor: str | None = None

    def __str__(self) -> str:
        lines: list[str] = []
        if self.summary:
            lines.append(
                f"Overall: {self.summary.overall_rating:.2f} "
                f"({self.summary.total_reviews} reviews)"
            )
            categories = [
                f"{label}: {getattr(self.summary, field):.1f}"
                for field, label in _CATEGORY_LABELS
                if getattr(self.summary, field) is not None
            ]
            lines.append(" | ".join(categories))
            lines.append("---")
        lines.extend(f"{review}\n" for review in self.reviews)
        if self.next_cursor:
            lines.append("\n[More reviews available, use cursor to paginate]")
        return "\n".join(lines)
