from pydantic import BaseModel, ConfigDict


class HostProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    host_id: str | None = None
    name: str
    is_superhost: bool | None = None
    response_rate: str | None = None
    response_time: str | None = None
    member_since: str | None = None
    languages: list[str] = []
    total_listings: int | None = None
    description: str | None = None
    profile_picture_url: str | None = None
    identity_verified: bool | None = None

    def __str__(self) -> str:
        lines = [f"# Host: {self.name}"]
        if self.host_id:
            lines.append(f"ID: {self.host_id}")
        if self.is_superhost:
            lines.append("Superhost: Yes")
        if self.response_rate:
            lines.append(f"Response rate: {self.response_rate}")
        if self.response_time:
            lines.append(f"Response time: {self.response_time}")
        if self.member_since:
            lines.append(f"Member since: {self.member_since}")
        if self.languages:
            lines.append(f"Languages: {', '.join(self.languages)}")
        if self.total_listings is not None:
            lines.append(f"Total listings: {self.total_listings}")
        if self.identity_verified:
            lines.append("Identity verified: Yes")
        if self.description:
            lines.append(f"\n{self.description}")
        return "\n".join(lines)
